from setuptools import find_packages, setup

setup(
    name="jlama-chat-stream",
    version="0.1.0",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    install_requires=[
        "httpx>=0.27",
        "pydantic>=2.5",
        "structlog>=23.1",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.21",
            "pytest-httpx>=0.30",
            "hypothesis>=6.80",
        ],
    },
    description="Streaming line-delimited JSON client for Jlama chat completions.",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.11",
)

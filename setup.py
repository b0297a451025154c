"""
setup.py

Packaging metadata and CLI entry point for ortb-validator.

Version: 1.0.0 - OpenRTB 2.6 bid request validation with a result cache,
batch orchestration, compliance scoring and reporting, exposed through a
click CLI and a FastAPI REST API.
"""
from setuptools import setup, find_packages

setup(
    name="ortb-validator",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "click",
        "pydantic>=2.0",
        "PyYAML",
        "python-dotenv",
        "fastapi",
    ],
    extras_require={
        "api": [
            "uvicorn",
        ],
        "test": [
            "pytest",
            "pytest-asyncio",
            "hypothesis",
            "httpx",
        ],
    },
    entry_points={
        "console_scripts": [
            "ortb-validator=cli:cli",
        ],
    },
    python_requires=">=3.9",
)

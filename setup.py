#!/usr/bin/env python3
"""
Setup script for agentpipe
"""

from setuptools import setup, find_packages
import os

# Read the README file
with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

# Get version from environment or default
version = os.getenv("VERSION", "0.1.0")

setup(
    name="agentpipe",
    version=version,
    author="agentpipe Contributors",
    description="Composable middleware pipeline for driving conversational agents against pluggable backends",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.4.0",
        "opentelemetry-api>=1.30.0",
        "typing-extensions>=4.13.2",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "black>=22.0.0",
            "flake8>=5.0.0",
            "mypy>=0.991",
        ],
    },
    keywords=[
        "llm",
        "agents",
        "middleware",
        "tool-calling",
        "conversation",
    ],
    zip_safe=False,
)

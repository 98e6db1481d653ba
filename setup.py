"""
Setup configuration for cratesync.
"""

from setuptools import setup, find_packages
from pathlib import Path

README = Path(__file__).parent / "README.md"
long_description = README.read_text() if README.exists() else ""

setup(
    name="cratesync",
    version="1.0.0",
    description="Crate list discovery and GitHub repository mirrors for corpus testing",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="cratesync",
    python_requires=">=3.9",
    packages=find_packages(include=["cratesync", "cratesync.*"]),
    install_requires=[
        "requests>=2.28.0",
        "click>=8.1.0",
        "python-dotenv>=1.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "cratesync=cratesync.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Testing",
    ],
)

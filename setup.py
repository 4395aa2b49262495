#!/usr/bin/env python3
"""
Setup script for the sector model structure & query layer
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="sd-structure",
    version="0.3.0",
    author="Your Name",
    author_email="your.email@example.com",
    description="Structure inspection and trajectory queries for multi-sector System Dynamics models",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/sd-structure",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["inspect_model"],
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Topic :: Scientific/Engineering :: Information Analysis",
        "Topic :: Scientific/Engineering :: Mathematics",
    ],
    python_requires=">=3.11",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=8.0.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "flake8>=6.0.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "inspect-model=inspect_model:main",
        ],
    },
    include_package_data=True,
    package_data={
        "sdstructure": ["models/*/*.yaml"],
    },
)

#!/usr/bin/env python3
"""stackup CLI - Setup"""

from setuptools import setup, find_packages

with open("requirements.txt") as f:
    requirements = [line for line in f.read().splitlines() if line and not line.startswith("#")]

setup(
    name="stackup",
    version="1.0.0",
    description="Bootstrap WordPress, nginx and VM development environments",
    author="stackup Team",
    packages=find_packages(include=["stackup", "stackup.*"]),
    package_data={
        "stackup": [
            "templates/nginx/*",
            "templates/vagrant/*",
            "templates/ansible/nginx-roles/*/*",
        ],
    },
    include_package_data=True,
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "stackup=stackup.main:main",
        ],
    },
    python_requires=">=3.9",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)

#!/usr/bin/env python

from setuptools import find_packages, setup

setup(
    name="dsigcheck",
    version="1.0.0",
    license="Apache Software License",
    description="Validate the XML Signatures embedded in a document and report per-signature, per-reference status",
    long_description=open("README.rst").read(),
    python_requires=">=3.8",
    install_requires=[
        "lxml >= 5.2.1",
        "cryptography >= 43",
    ],
    extras_require={
        "tests": [
            "ruff",
            "coverage",
            "build",
            "wheel",
            "mypy",
            "lxml-stubs",
        ]
    },
    packages=find_packages(exclude=["test"]),
    entry_points={"console_scripts": ["dsigcheck = dsigcheck.cli:main"]},
    platforms=["MacOS X", "Posix"],
    test_suite="test",
    classifiers=[
        "Intended Audience :: Developers",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: MacOS :: MacOS X",
        "Operating System :: POSIX",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Security :: Cryptography",
        "Topic :: Text Processing :: Markup :: XML",
    ],
)

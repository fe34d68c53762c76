#!/usr/bin/env python3
"""
Setup script for StructFuzz

Provides automated dependency installation.
"""

from setuptools import setup, find_packages

setup(
    name="StructFuzz",
    version="1.0.0",
    description="Structure-aware fuzz value generation, mutation and binary serialization built on Scapy fields",
    python_requires=">=3.10",
    install_requires=["scapy"],
    extras_require={
        "test": ["pytest"],
    },
    packages=find_packages(include=["structfuzz", "structfuzz.*"]),
)

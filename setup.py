#!/usr/bin/env python3
"""
Setup script for handorbit (hand gesture camera control)
"""
from pathlib import Path

from setuptools import find_packages, setup

ROOT = Path(__file__).parent


def read_requirements(name):
    """Read a requirements file, skipping comments and blank lines"""
    lines = (ROOT / name).read_text().splitlines()
    return [line.strip() for line in lines if line.strip() and not line.startswith("#")]


setup(
    name="handorbit",
    version="0.1.0",
    description="Hand gesture to orbit camera control pipeline",
    packages=find_packages(include=["handorbit", "handorbit.*"]),
    package_data={"handorbit": ["config.default.yaml"]},
    python_requires=">=3.8",
    install_requires=read_requirements("requirements.txt"),
    extras_require={
        "camera": ["opencv-python>=4.5", "mediapipe>=0.10"],
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": ["handorbit=handorbit.main:main"],
    },
)

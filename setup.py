"""
Setup script for nativepace.

NativePace is the learning-progress engine behind connected speech practice.
Given an exercise attempt it decides:

1. How correct the answer was (fuzzy dictation matching)
2. How mastery and the SM-2 review schedule change
3. Whether the daily streak continues, and what to practice next

It is a pure computation library; storage and UI live elsewhere.
"""

from setuptools import find_packages, setup

setup(
    name="nativepace",
    version="1.0.0",
    description="Mastery, spaced repetition and streak engine for pronunciation practice",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="NativePace",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # Logging
        "loguru>=0.7.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
        "Topic :: Education :: Computer Aided Instruction (CAI)",
    ],
    keywords="learning spaced-repetition sm2 pronunciation education",
)

# setup.py
"""Setup script for the Media Deduplication Engine."""

import os

from setuptools import setup, find_packages

setup(
    name="media-dedup-engine",
    version="1.0.0",
    description="Exact duplicate and visual similarity detection for video collections",
    long_description=open("README.md").read() if os.path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Media Tool Team",
    packages=find_packages(exclude=["*.tests", "*.tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "Pillow>=9.1.0",
        "imagehash>=4.0.0",
        "tqdm>=4.50.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
            "pytest-cov>=2.10.0",
            "pytest-mock>=3.0.0",
            "numpy>=1.21.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "media-dedup=media_dedup.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Multimedia :: Video",
        "Topic :: System :: Archiving",
    ],
)

from __future__ import annotations

import os

from setuptools import find_packages, setup


def read_version() -> str:
    """Read the version, preferring the environment variable."""
    env_version = os.getenv("PKG_VERSION", "").strip()
    if env_version:
        return env_version.lstrip("v")
    return "0.1.0"


setup(
    name="counting-bitmap",
    version=read_version(),
    description="Bit-packed saturating counter array for deduplicating and sorting bounded integers.",
    long_description="Bit-packed saturating counter array for deduplicating and sorting bounded integers.",
    long_description_content_type="text/plain",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["counting-bitmap-demo=counting_bitmap.demo:main"],
    },
)

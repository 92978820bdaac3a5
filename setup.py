"""
objectmap - Incremental Object Clustering
Group segment observations into objects attached to places
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""

setup(
    name="objectmap",
    version="0.1.0",
    description="Incremental segment-to-object clustering for layered scene graphs",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Riddhiman Rana",
    author_email="riddhimanrana@example.com",
    packages=find_packages(include=["objectmap", "objectmap.*"]),
    python_requires=">=3.10",
    install_requires=[
        # Numerics
        "numpy>=1.26.4",
        "scipy>=1.11.0",
        "scikit-learn>=1.2.2",

        # Graph
        "networkx>=3.1",

        # CLI/UI
        "rich>=14.1.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "black>=23.0.0",
            "ruff>=0.13.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "objectmap=objectmap.cli.main:main",
        ],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)

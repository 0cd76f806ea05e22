from setuptools import find_packages, setup

with open("README.md", encoding="utf-8") as readme_file:
    long_description = readme_file.read()

setup(
    name="embedkit",
    version="0.1.0",
    author="embedkit contributors",
    description="Generic dimensionality reduction over opaque data accessed through callbacks",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["embedkit", "embedkit.*"]),
    install_requires=[
        "numpy>=1.22.0",
        "scipy>=1.9.0,<2.0.0",
        "scikit-learn>=1.2.0,<2.0.0",
        "networkx>=3.0.0,<4.0.0",
        "jsonschema>=4.0.0,<5.0.0",
        "PyYAML>=6.0,<7.0",
    ],
    extras_require={
        "wandb": ["wandb>=0.15.0,<1.0.0"],
        "test": ["pytest>=7.0.0"],
    },
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Science/Research",
        "Topic :: Scientific/Engineering :: Mathematics",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
)

"""
zodgen - Zod Schema Generator
Install: pip install -e .
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="zodgen",
    version="1.0.0",
    author="Diegoproggramer",
    author_email="",
    description="Generate Zod validation schemas from an annotated datamodel",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/Diegoproggramer/zodgen",
    packages=find_packages(exclude=("tests", "tests.*")),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Code Generators",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2.0.0",
        "PyYAML>=6.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "black>=23.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "zodgen=zodgen.cli:cli_main",
        ],
    },
    keywords="zod, typescript, generator, schema, validation, code-generator, crud",
    project_urls={
        "Bug Reports": "https://github.com/Diegoproggramer/zodgen/issues",
        "Source": "https://github.com/Diegoproggramer/zodgen",
    },
)

"""
schemagen - Template-driven model generator
Install: pip install -e .
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    long_description = f.read()

setup(
    name="schemagen",
    version="1.0.0",
    author="",
    author_email="",
    description="Render per-table and singleton Python files from Jinja2 templates",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["schemagen", "schemagen.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
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
        "Jinja2>=3.1",
        "black>=23.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "ruff>=0.1.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "schemagen=schemagen.cli:cli_main",
        ],
    },
    keywords="generator, orm, models, templates, jinja2, code-generator, python",
)

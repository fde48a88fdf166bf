"""
Setup script for the Mastra System Check package.
"""

from setuptools import setup, find_packages
import os

# Read the README
readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
if os.path.exists(readme_path):
    with open(readme_path, 'r', encoding='utf-8') as f:
        long_description = f.read()
else:
    long_description = "Configuration best-practice rules and checker for Mastra projects."

setup(
    name="mastracheck",
    version="1.0.0",
    author="Mastra System Check Team",
    description="Rule corpus and static checker for Mastra project configuration",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/goldk3y/mastra-system-check",
    packages=find_packages(exclude=["tests", "tests.*"]),
    package_data={
        "mastracheck": [
            "corpus/*.md",
            "corpus/*.json",
            "corpus/rules/*.md",
        ],
    },
    include_package_data=True,
    python_requires=">=3.8",
    install_requires=[
        "pyyaml>=6.0",
        "rich>=13.0",
        "structlog>=23.1",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mastracheck=mastracheck.cli:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Software Development :: Quality Assurance",
    ],
    keywords="mastra, linter, configuration, best-practices, static-analysis",
    project_urls={
        "Source": "https://github.com/goldk3y/mastra-system-check",
    },
)

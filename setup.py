"""Setup script for ReviewPilot"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
this_directory = Path(__file__).parent
long_description = ""
readme_path = this_directory / "README.md"
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

setup(
    name="reviewpilot",
    version="0.3.0",
    description="Layered code review for diffs: heuristics, secrets, syntax rules, AI review and plugins",
    long_description=long_description,
    long_description_content_type="text/markdown",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Quality Assurance",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.11",
    install_requires=[
        "numpy>=1.20.0",
        "scikit-learn>=1.0.0",
        "joblib>=1.2.0",
        "rich>=13.0.0",
        "typer>=0.9.0,<0.26",
        "click>=8.0.0",
        "unidiff>=0.7.4",
        "tree-sitter>=0.23.0",
        "tree-sitter-javascript>=0.23.0",
        "tree-sitter-typescript>=0.23.0",
        "tree-sitter-python>=0.23.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "reviewpilot=reviewpilot.cli:app",
        ],
    },
    keywords="code-review linter secrets static-analysis diff",
)

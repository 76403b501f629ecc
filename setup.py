"""
Setup script for dmat

Pure-Python package (ctypes storage, numpy interop); no native build step.
Source lives under src/dmat.
"""

from pathlib import Path
from setuptools import setup, find_packages


# Read version from src/dmat/__init__.py
def get_version():
    version_file = Path("src/dmat/__init__.py")
    if version_file.exists():
        for line in version_file.read_text().splitlines():
            if line.startswith("__version__"):
                return line.split("=")[1].strip().strip('"').strip("'")
    return "0.1.0"


# Read long description from README
def get_long_description():
    readme = Path("README.md")
    if readme.exists():
        return readme.read_text(encoding="utf-8")
    return ""


setup(
    name="dmat",
    version=get_version(),
    description="Growable row-major dynamic matrices with checked access and zero-copy interop",
    long_description=get_long_description(),
    long_description_content_type="text/markdown",
    python_requires=">=3.8",
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    install_requires=[
        "numpy>=1.20",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    zip_safe=False,  # ctypes blocks are exported by address
)

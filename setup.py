from setuptools import setup, find_packages
from pathlib import Path

setup(
    name="ovara",
    version=Path("./ovara/VERSION").read_text().strip(),
    packages=find_packages(include=["ovara", "ovara.*"]),
    package_data={"ovara": ["VERSION"]},
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "opencv-python",
        "matplotlib",
        "easydict",
        "tqdm",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["ovara=ovara.cli:main"],
    },
)

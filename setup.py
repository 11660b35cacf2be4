"""
Setup file.
"""

import os

from setuptools import find_packages, setup

URL = "https://github.com/zackees/repoforge"
KEYWORDS = "archlinux pacman aur makepkg repo-add tkg repository build"
HERE = os.path.dirname(os.path.abspath(__file__))


def read_version() -> str:
    init_py = os.path.join(HERE, "src", "repoforge", "__init__.py")
    with open(init_py, encoding="utf-8") as f:
        for line in f:
            if line.startswith("__version__"):
                return line.split("=", 1)[1].strip().strip('"')
    raise RuntimeError("__version__ not found")


if __name__ == "__main__":
    setup(
        name="repoforge",
        version=read_version(),
        description="Keeps a local pacman repository in sync with AUR and TKG recipes",
        maintainer="Zachary Vorhies",
        keywords=KEYWORDS,
        url=URL,
        python_requires=">=3.9",
        package_dir={"": "src"},
        packages=find_packages(where="src"),
        install_requires=[
            "requests",
            "tqdm",
            "psutil",
        ],
        extras_require={
            "test": ["pytest"],
        },
        entry_points={
            "console_scripts": ["repoforge=repoforge.cli:main"],
        },
        package_data={"repoforge": ["assets/*.ini"]},
        include_package_data=True,
    )

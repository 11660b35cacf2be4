"""
repoforge - keeps a local pacman repository in sync with upstream recipes.

Packages are fetched from AUR or GitHub, built with makepkg only when the
upstream version is newer than what the repository already holds, and the
repository database is regenerated with repo-add at the end of every run.
"""

__version__ = "0.1.0"

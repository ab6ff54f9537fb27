"""op-ubi — mise backend that installs private GitHub releases with ubi,
using 1Password for the GitHub token and a version cache to avoid asking
for it."""

__version__ = "1.0.0"

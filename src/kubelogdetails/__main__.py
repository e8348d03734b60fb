"""Allow running as ``python -m kubelogdetails``."""

from kubelogdetails.cli import main

main()

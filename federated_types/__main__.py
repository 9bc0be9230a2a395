"""
Entry point for `python -m federated_types`.
"""

from federated_types.cli import main


if __name__ == "__main__":
    main()

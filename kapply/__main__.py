"""
CLI entry point, when used as a module: `python -m kapply`.

Useful for debugging in the IDEs (use the start-mode "Module", module "kapply").
"""
from kapply import cli

if __name__ == '__main__':
    cli.main()

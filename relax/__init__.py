"""Relax -- project scaffolding CLI.

Materializes a new project (or a single component) from a bundled template
tree or a remote template repository, substituting ``{{TOKEN}}`` placeholders
in file names, directory names and ``.art`` file contents.

Usage::

    relax create my-app
    relax generate src/components/MyButton
"""

__version__ = "1.0.0"

# -*- coding: utf-8 -*-

import sphinx_rtd_theme

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.autosummary",
    "sphinx.ext.intersphinx",
    "sphinx.ext.imgmath",
    "sphinx.ext.viewcode",
]

project = "dampls"
release = "0.1.0"
version = ".".join(release.split(".")[:2])

copyright = "2015-2026, Peter K. G. Williams and collaborators"
author = "Peter K. G. Williams and collaborators"

templates_path = ["_templates"]
source_suffix = ".rst"
master_doc = "index"
language = "en"
exclude_patterns = []

pygments_style = "sphinx"
todo_include_todos = False


# Intersphinx

intersphinx_mapping = {
    "python": ("https://docs.python.org/3/", None),
    "numpy": ("https://numpy.org/doc/stable/", None),
}


# HTML output settings

html_theme = "sphinx_rtd_theme"
html_static_path = []
htmlhelp_basename = "dampls-doc"

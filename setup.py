#! /usr/bin/env python
# Copyright 2014-2026 Peter Williams <peter@newton.cx> and collaborators.
# Licensed under the MIT License.

from setuptools import setup


def get_long_desc():
    in_preamble = True
    lines = []

    with open("README.md", "rt", encoding="utf8") as f:
        for line in f:
            if in_preamble:
                if line.startswith("<!--pypi-begin-->"):
                    in_preamble = False
            else:
                if line.startswith("<!--pypi-end-->"):
                    break
                else:
                    lines.append(line)

    return "".join(lines)


setup(
    name="dampls",
    version="0.1.0",  # also edit dampls/__init__.py, docs/source/conf.py
    zip_safe=False,
    packages=[
        "dampls",
        "dampls.cli",
    ],
    python_requires=">=3.7",
    # array_equal(..., equal_nan=True) arrived in Numpy 1.19.
    install_requires=[
        "numpy >= 1.19",
    ],
    extras_require={
        "docs": [
            "sphinx",
            "sphinx_rtd_theme",
        ],
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "dampfit = dampls.cli.fittool:commandline",
        ],
    },
    author="Peter Williams",
    author_email="peter@newton.cx",
    description="Damped Gauss-Newton (Levenberg-Marquardt) least-squares fitting",
    license="MIT",
    keywords="least-squares levenberg-marquardt fitting science",
    long_description=get_long_desc(),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Mathematics",
    ],
)

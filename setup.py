from pathlib import Path

from setuptools import setup, find_packages

# The directory containing this file
here = Path(__file__).parent

# The text of the README file
README = (here / "README.md").read_text()

requirements = (here / "requirements/base.in").read_text().splitlines()

dev_requirements = (here / "requirements/dev.in").read_text().splitlines()

setup(
    name="graasp",
    python_requires=">=3.10",
    version="0.1.0",
    description="Graasp item tree: hierarchy, memberships and permissions",
    long_description=README,
    long_description_content_type="text/markdown",
    license="MIT",
    classifiers=[
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
    ],
    package_dir={"": "src"},
    packages=find_packages(where="src", include=["graasp", "graasp.*"]),
    include_package_data=True,
    install_requires=requirements,
    extras_require={"dev": dev_requirements},
    entry_points={"console_scripts": ["graasp=graasp.app.main:main"]},
)

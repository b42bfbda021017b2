# -*- coding: utf-8 -*-

"""setup.py"""

from setuptools import setup, find_namespace_packages


def read_content(filepath):
    with open(filepath) as fobj:
        return fobj.read()


classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "License :: OSI Approved :: GNU Lesser General Public License v3 (LGPLv3)",
    "Programming Language :: Python",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3.8",
    "Programming Language :: Python :: Implementation :: CPython",
]


def get_requirements(path="requirements.txt"):
    """Read a list of requirements, skipping empty lines and comments."""
    with open(path) as f:
        reqs = f.read().splitlines()
    return [req for req in reqs if req.strip() and not req.startswith("#")]


long_description = read_content("README.rst")

setup(
    name="pubtools-blob-verify",
    version="0.1.0",
    description="Verify blobs of a container image mirror against its manifests",
    long_description=long_description,
    long_description_content_type="text/x-rst",
    classifiers=classifiers,
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["pubtools.*"]),
    data_files=[],
    python_requires=">=3.8",
    install_requires=get_requirements(),
    extras_require={"test": get_requirements("test-requirements.txt")},
    entry_points={
        "console_scripts": [
            "pubtools-blob-verify = pubtools._blob_verify.blob_verify:verify_blobs_main",
        ],
    },
    include_package_data=True,
)

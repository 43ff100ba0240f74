from setuptools import setup, find_packages

# Use find_packages to automatically discover all packages
packages = find_packages(include=["diffsim", "diffsim.*"])

setup(
    name="diffsim-sdt",
    version="0.1.0",
    packages=packages,
    package_data={
        "diffsim": ["cli/*.yaml"],
    },
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "numba",
        "pandas",
        "scipy",
        "tqdm",
        "pyyaml",
        "typer",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "diffsim-generate=diffsim.cli.generate:app",
        ],
    },
)


from setuptools import setup, find_packages

setup(
    name="connect_four_solver",
    version="0.1.0",
    description="Strong solver and adjustable AI player for Connect Four",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"connect_four_solver": ["books/*.bin"]},
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "tqdm",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "c4-book=connect_four_solver.data.book_generator:main",
            "c4-benchmark=connect_four_solver.data.benchmark:main",
        ],
    },
)

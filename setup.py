from setuptools import setup, find_packages

setup(
    name="network_stats",
    version="0.1.0",
    description="Statistical post-processing of gene co-expression networks: edge clustering, "
                "sample-cluster enrichment testing and quantitative trait association",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pandas>=2.0",
        "numpy>=1.24",
        "scipy>=1.11",
        "statsmodels>=0.14",
        "scikit-learn>=1.3",
        "pyyaml>=6.0",
        "matplotlib>=3.7",
        "seaborn>=0.13",
        "tqdm>=4.60",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    include_package_data=True,
)

from setuptools import setup, find_packages

setup(
    name="pairs-spread-backtest",
    version="1.0.0",
    author="Jose Orlando Bobadilla Fuentes",
    description=(
        "Pairs trading spread analytics: rolling OLS hedge ratios, rolling "
        "z-scores, ADF stationarity, half-life and Hurst diagnostics, and a "
        "threshold-crossing spread backtest"
    ),
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.24.0", "scipy>=1.11.0", "pandas>=2.0.0",
        "statsmodels>=0.14.0",
        "matplotlib>=3.7.0", "seaborn>=0.12.0",
    ],
    extras_require={
        "dev": ["pytest>=7.4.0", "pytest-cov>=4.1.0"],
    },
    keywords=[
        "pairs-trading", "spread", "statistical-arbitrage",
        "hedge-ratio", "dickey-fuller", "mean-reversion", "backtesting",
    ],
)

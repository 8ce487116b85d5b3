"""
Setup for Textual Sentiment Measures.

Author: Jose Orlando Bobadilla Fuentes, CQF | MSc AI
"""
from setuptools import setup, find_packages

setup(
    name="sentiment-measures",
    version="1.0.0",
    author="Jose Orlando Bobadilla Fuentes",
    description=(
        "Textual sentiment time series from lexicons, valence shifters and "
        "time weighting, with rolling elastic-net prediction and attribution."
    ),
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["main"],
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.24.0",
        "pandas>=2.0.0",
        "scipy>=1.11.0",
        "scikit-learn>=1.3.0",
        "joblib>=1.3.0",
        "tqdm>=4.65.0",
        "vaderSentiment>=3.3.2",
    ],
    extras_require={
        "test": ["pytest>=7.4.0"],
    },
    keywords=[
        "sentiment-analysis", "nlp", "time-series", "lexicon",
        "elastic-net", "nowcasting", "quantitative-finance",
    ],
)

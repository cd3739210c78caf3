from setuptools import setup, find_packages

setup(
    name="rep_pipeline",
    version="0.1",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        'numpy>=1.21.0',
        'pandas>=1.3.0',
        'scikit-learn>=0.24.0',
        'joblib>=1.0.0'
    ],
    extras_require={
        'test': ['pytest>=7.0']
    }
)

from setuptools import setup, find_packages

setup(
    name="datavision-reclog",
    version="0.1.0",
    description="Human-readable key/value record log format with streaming reader and writer",
    author="Dariusz Duszyński",
    author_email="dariusz@datavision.pl",
    url="https://github.com/dariuszduszynski/Datavision-Easy-Store",
    
    package_dir={"": "src"},
    packages=find_packages(where="src"),
    
    install_requires=[
        "structlog>=23.1.0",
        "pydantic>=2.0.0",
        "click>=8.1.0",
        "prometheus-client>=0.16.0",
    ],
    
    extras_require={
        "dev": [
            "pytest>=7.3.0",
            "pytest-cov>=4.0.0",
            "black>=23.3.0",
            "mypy>=1.3.0",
            "ruff>=0.0.270",
        ],
    },
    
    entry_points={
        "console_scripts": [
            "reclog=reclog.cli.main:cli",
        ],
    },
    
    python_requires=">=3.11",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3.11",
    ],
)

"""Setup configuration for the nvml-exporter package."""

from setuptools import setup, find_packages
from pathlib import Path

# Read README for long description
readme_file = Path(__file__).parent / "README.md"
long_description = (
    readme_file.read_text(encoding="utf-8") if readme_file.exists() else ""
)

setup(
    name="nvml-exporter",
    version="1.0.0",
    description="Prometheus exporter for NVIDIA GPU telemetry via NVML",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["nvml_exporter", "nvml_exporter.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: System Administrators",
        "Topic :: System :: Monitoring",
        "Topic :: System :: Hardware",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.10",
    install_requires=[
        "nvidia-ml-py>=11.450",
        "prometheus-client>=0.16.0",
        "fastapi>=0.100.0",
        "uvicorn>=0.22.0",
        "pyyaml>=5.3.0",
    ],
    extras_require={
        "dev": [
            "pytest>=6.0",
            "pytest-cov>=2.12.0",
            "pytest-mock>=3.6.0",
            "httpx>=0.24.0",
            "black>=21.0",
            "flake8>=3.9",
            "isort>=5.0",
        ],
        "test": [
            "pytest>=6.0",
            "pytest-cov>=2.12.0",
            "pytest-mock>=3.6.0",
            "httpx>=0.24.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "nvml-exporter=nvml_exporter.cli:main",
        ],
    },
    include_package_data=True,
    zip_safe=False,
)

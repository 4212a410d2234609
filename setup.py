#!/usr/bin/env python3
"""
Setup script for purple-reaction package.
Makes the package installable and reusable in other projects.
"""

from setuptools import setup, find_packages
import os

# Read the README file
def read_readme():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return "Reaction-time tester with a monotonic-clock trial engine and JSON/CSV result records"

# Read requirements from requirements.txt
def read_requirements():
    req_path = os.path.join(os.path.dirname(__file__), 'requirements.txt')
    if os.path.exists(req_path):
        with open(req_path, 'r') as f:
            return [line.strip() for line in f if line.strip() and not line.startswith('#')]
    return [
        'pyyaml>=6.0',
        'numpy>=1.21.0',
        'pygame>=2.0.0',
    ]

setup(
    name="purple-reaction",
    version="0.1.0",
    description="Reaction-time tester with a monotonic-clock trial engine and JSON/CSV result records",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    author="Your Name",
    author_email="your.email@example.com",
    packages=find_packages(include=['purple_reaction', 'purple_reaction.*']),
    include_package_data=True,
    install_requires=read_requirements(),
    extras_require={
        'dev': [
            'pytest>=7.0',
            'black>=23.0',
            'flake8>=6.0',
            'mypy>=1.0',
        ],
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'purple-reaction=purple_reaction.cli:main',
            'purple-reaction-launch=purple_reaction.launcher:main',
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Human Machine Interfaces",
    ],
    python_requires=">=3.8",
    keywords="reaction time, psychophysics, pygame, stimulus, false start",
)

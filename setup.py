"""
giftgen - Moodle GIFT quizzes generated from documents with Google Gemini

Installation:
    pip install -e .

This installs the 'giftgen' command in your environment.
"""

from setuptools import setup, find_packages
import os

# Read README for long description
long_description = ''
if os.path.exists('README.md'):
    with open('README.md', 'r', encoding='utf-8') as f:
        long_description = f.read()

setup(
    name='giftgen',
    version='1.0.0',
    description='Generate Moodle GIFT quizzes from documents with Google Gemini',
    long_description=long_description,
    long_description_content_type='text/markdown',
    license='MIT',

    packages=find_packages(exclude=['tests', 'tests.*', 'docs']),

    # Python version requirement
    python_requires='>=3.9',

    # Dependencies
    install_requires=[
        'click>=8.0',
        'requests>=2.28',
        'PyYAML>=6.0',
        'httpx[http2]>=0.24',
    ],

    # Optional dependencies
    extras_require={
        'dev': [
            'pytest>=7.4',
            'pytest-cov>=4.1',
            'pytest-mock>=3.11',
        ],
    },

    # CLI entry point - this creates the 'giftgen' command
    entry_points={
        'console_scripts': [
            'giftgen=giftgen.cli:main',
        ],
    },

    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Education',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Education',
    ],

    keywords='moodle gift quiz gemini lms education',
)

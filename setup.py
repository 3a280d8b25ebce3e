"""
vl53monitor - VL53L0X Serial Monitor

Live monitor and CSV logger for a VL53L0X ranging sensor on a serial line.
It can be installed via:
    - pip install .
    - pip install -e .[dev]  (for development)
"""

import os

from setuptools import setup, find_packages

long_description = ''
if os.path.exists('README.md'):
    with open('README.md', 'r', encoding='utf-8') as fh:
        long_description = fh.read()

setup(
    name='vl53monitor',
    version='1.0.0',
    description='Serial monitor and CSV logger for VL53L0X distance sensors',
    long_description=long_description,
    long_description_content_type='text/markdown',
    license='MIT',

    packages=find_packages(exclude=['tests', 'tests.*']),

    install_requires=[
        'numpy>=1.21.0',
        'pyserial>=3.5',
    ],

    extras_require={
        'test': [
            'pytest>=7.0',
            'pytest-cov',
            'pytest-timeout',
        ],
        'dev': [
            'pytest>=7.0',
            'pytest-cov',
            'pytest-timeout',
        ],
    },

    entry_points={
        'console_scripts': [
            'vl53-monitor=vl53monitor.__main__:main',
        ],
    },

    python_requires='>=3.8',

    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Developers',
        'Topic :: Scientific/Engineering',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Operating System :: OS Independent',
    ],
)

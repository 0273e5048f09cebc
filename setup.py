# setup.py

from setuptools import setup, find_packages

setup(
    name='room-mode-eq',
    version='1.0.0',
    description='Room mode simulation and multi-pass parametric EQ generation for subwoofers',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.8',
    install_requires=[
        'numpy',
        'scipy',
        'matplotlib',
        'PyQt5',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'room-mode-eq=room_mode_eq.cli.__main__:main',
        ],
    },
)

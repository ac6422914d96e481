from pathlib import Path

from setuptools import find_packages, setup

setup(
    name='mudecay',
    version='1.0.0',
    packages=find_packages(include=['mudecay', 'mudecay.*']),
    license='GPLv3',
    description='Muon lifetime measurement from Michel electron decays',
    long_description=(Path(__file__).parent / 'README.rst').read_text(),
    keywords=['muon lifetime', 'Michel electrons', 'cosmic rays'],
    classifiers=[
        'Intended Audience :: Science/Research',
        'Intended Audience :: Education',
        'Operating System :: OS Independent',
        'Programming Language :: Python',
        'Programming Language :: Python :: 3',
        'Topic :: Scientific/Engineering',
        'Topic :: Education',
        'License :: OSI Approved :: GNU General Public License v3 (GPLv3)',
    ],
    entry_points={
        'console_scripts': [
            'analyse_michel_electrons = mudecay.analyse:main',
        ],
    },
    install_requires=['numpy', 'scipy', 'tables>=3.3.0',
                      'progressbar2>=3.7.0', 'lazy'],
    extras_require={'dev': ['Sphinx', 'ruff', 'coverage'],
                    'test': ['mock']},
)

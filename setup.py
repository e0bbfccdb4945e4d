from setuptools import setup, find_packages

setup(
    name='tinybasic',
    version='0.1.0',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    install_requires=['pyarrow'],  # Columnar export of the syntax tree and variable state
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'tinybasic=tiny_basic.cli:main'  # Entry point to main function
        ]
    },
    author='Tiny BASIC Team',
    description='A scanner, parser and tree-walking interpreter for a line-numbered Tiny BASIC dialect',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    license='LGPLv3.0',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: GNU Lesser General Public License v3 (LGPLv3)',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
    python_requires='>=3.8',
)

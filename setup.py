from setuptools import setup, find_packages

setup(
    name='slicehttp',
    version='0.1.0',
    description='Small async HTTP client with a tolerant HTTP/1.x response parser.',
    author='Vitaliy',
    author_email='your.email@example.com',
    url='https://github.com/vitalya420/slicehttp',
    packages=find_packages('src'),
    package_dir={'': 'src'},
    install_requires=[],
    extras_require={
        'test': ['pytest'],
        'uvloop': ['uvloop'],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
)

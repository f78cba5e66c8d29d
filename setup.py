import os
import sys
from setuptools import setup, find_packages

if sys.version_info < (3, 10):
    sys.exit('ERROR: numopt requires Python 3.10+')


if __name__ == '__main__':
    setup(
        name="numopt",
        description="Numerical optimization driver with concurrent function evaluation",
        long_description=open(os.path.join(os.path.dirname(__file__), 'README.md'),
                              encoding='utf-8').read(),
        long_description_content_type='text/markdown',
        classifiers=[
            "Topic :: Scientific/Engineering",
            "Topic :: Scientific/Engineering :: Mathematics",
            "Development Status :: 4 - Beta",
            "Environment :: Console",
            "Intended Audience :: Developers",
            "Intended Audience :: Education",
            "Intended Audience :: Science/Research",
            "Operating System :: OS Independent",
            "Framework :: Matplotlib",
            'Programming Language :: Python :: 3 :: Only',
            "Typing :: Typed",
        ],
        entry_points={},
        packages=find_packages(),
        include_package_data=True,
        install_requires=[
            "numpy >= 1.10.0",
            "scipy >= 1.11.0",
            "joblib",
        ],
        extras_require={
            'all': [
                "matplotlib",
            ],
            'test': [
                "matplotlib",
            ],
        },
        setup_requires=[
            'setuptools_git',
            'setuptools_scm',
        ],
        use_scm_version={
            'write_to': os.path.join('numopt', '_version.py'),
            'fallback_version': '0.0.0',
        },
        python_requires='>= 3.10',
    )

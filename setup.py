from setuptools import find_packages, setup
import os
from glob import glob

package_name = 'seq_ransac'

setup(
    name=package_name,
    version='1.0.0',
    package_dir={'': 'src'},
    packages=find_packages(where='src', exclude=['test']),
    data_files=[
        # Include config files
        (os.path.join('share', package_name, 'config'), glob('src/config/*.yaml')),
    ],
    python_requires='>=3.8',
    install_requires=['numpy', 'pydantic>=2', 'PyYAML'],
    extras_require={
        'test': ['pytest'],
    },
    zip_safe=True,
    description='Sequential RANSAC detection of multiple planes in 3D point clouds',
    license='MIT',
)

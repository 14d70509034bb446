from setuptools import setup, find_packages

setup(
    name='tagClock',
    version='0.1.0',
    description='A CLI time tracker storing tagged events as patch files in a synced directory.',
    author='René Lachmann',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'tabulate',
        'python-dotenv',
        'markdown',
    ],
    entry_points={
        'console_scripts': [
            'tagclock=tagclock.__main__:main',
        ],
    },
    include_package_data=True,
    package_data={
        '': ['tagclock.env.example'],
    },
    python_requires='>=3.9',
    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
    ],
)

from setuptools import setup, find_packages

setup(
    name="signage-player",
    version="1.0.0",
    description="Kiosk signage player that displays CoreGeek event feeds with offline fallback",
    author="Matt Skillman",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"signage_player": ["static/*.css"]},
    python_requires=">=3.10",
    install_requires=[
        "Flask>=3.0.0",
        "APScheduler>=3.10.0,<4.0",
        "requests>=2.31.0",
        "python-dateutil>=2.8.2",
        "psutil>=5.9.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.4.0",
            "responses>=0.23.0",
            "black>=23.0.0",
            "pylint>=2.17.0",
        ]
    },
    entry_points={
        "console_scripts": [
            "signage-player=signage_player.app:main",
            "signage-configure-api-key=signage_player.configure_api_key:main",
        ]
    },
)

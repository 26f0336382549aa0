"""
CDSP CLI - Command-line interface for headless geometry editing.

Runs a single task over a YAML scene file and prints the resulting layer
as YAML.

Usage:
    cdsp-cli split scene.yaml --source parcel --targets cut_a cut_b
    cdsp-cli peel scene.yaml --source building --targets courtyard
    cdsp-cli combine scene.yaml --source p1 --targets p2 p3
    cdsp-cli decompose scene.yaml --source islands --deselect 1
"""

__version__ = "1.0.0"

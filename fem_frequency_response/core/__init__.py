"""Core of the FEM frequency response package: structural model and evaluation."""

"""
VLM Product Tagger

Tags product catalogs (name + image URL) with short search tags generated by a
vision-language model.
"""

__version__ = "1.0.0"

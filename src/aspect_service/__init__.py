"""Aspect ratio normalisation service.

A signed webhook names a character and a source image; the service renders
square, landscape and portrait variants on a black canvas, stores them and
records their public URLs on the character.
"""

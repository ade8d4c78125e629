"""Skin Mirror: веб-камера с анализом кожи, макияжем и "заплаткой" по жестам."""

__version__ = "0.1.0"

"""Adapters package (encoders and frame sources). Import modules directly; codec libraries load on demand."""

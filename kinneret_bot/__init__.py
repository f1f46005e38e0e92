"""Kinneret water level bot.

Collects the daily Sea of Galilee level surveys and publishes one
summary tweet per new survey.
"""

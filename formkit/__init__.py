"""
formkit: declarative admin forms with conditional visibility,
validation, encryption and pluggable persistence.
"""

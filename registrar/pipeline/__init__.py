"""
End-to-end registry build, output serialization and command-line interface.
"""

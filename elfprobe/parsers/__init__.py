"""
ELF64 Parsers
=============

Leaf-first building blocks of the engine: raw reader, header parser,
table loader, string resolver, and symbol table loader / resolver.
"""

from sqlalchemy.dialects import postgresql

# PostgreSQL's own quoting rules: reserved words, case folding, legal characters.
identifierPreparer = postgresql.dialect().identifier_preparer

def quoteIdentifier(name: str, force: bool = False) -> str:
    if force:
        return identifierPreparer.quote_identifier(name)
    return identifierPreparer.quote(name)

def needsQuoting(name: str) -> bool:
    return quoteIdentifier(name) != name

def quoteQualified(schemaName: str, objectName: str) -> str:
    return f"{quoteIdentifier(schemaName, force=True)}.{quoteIdentifier(objectName, force=True)}"

def quoteLiteral(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"

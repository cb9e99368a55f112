from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base per gli schemi SCM.

    Il frontend usa nomi camelCase (laboratoryId, dataLancio, ...):
    in uscita i campi sono serializzati con l'alias, in ingresso sono
    accettati sia l'alias che il nome Python.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )

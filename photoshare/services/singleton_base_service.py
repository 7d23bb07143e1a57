from abc import ABC
from typing import ClassVar, Dict, Type, Self


class SingletonBaseService(ABC):
    _instances: ClassVar[Dict[type, "SingletonBaseService"]] = {}

    def __new__(cls: Type[Self], *args, **kwargs) -> Self:
        instance = cls._instances.get(cls)
        if instance is None:
            instance = super().__new__(cls)
            cls._instances[cls] = instance

        return instance

    @classmethod
    def get_instance(cls: Type[Self]) -> Self:
        return cls._instances.get(cls) or cls()

    @classmethod
    def reset_instance(cls) -> None:
        cls._instances.pop(cls, None)

# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Typed settings objects built from plain dictionaries.

A settings class lists its fields as class attributes.  Constructing it from a
dictionary (parsed YAML, or values collected from command-line flags) checks
every key and value, so a constructed object is always valid."""

import abc
import enum

from typing import Any, Dict, Generic, Optional, Type, TypeVar, cast


class ConfigError(Exception):
  """Base class for settings errors.  str() gives an English explanation."""

  def __init__(self, class_ref, field_name, field):
    self.class_ref = class_ref
    self.class_name = class_ref.__name__

    self.field_name = field_name
    """Which key of the input was rejected."""

    self.field = field
    """The Field declaration for that key, if there is one."""


class NotADictionary(ConfigError):
  """The input as a whole was not a mapping of field names to values."""

  def __init__(self, class_ref, value):
    super().__init__(class_ref, None, None)
    self.value = value

  def __str__(self):
    return '{} settings must be a mapping of field names to values, got {}'.format(
        self.class_name, type(self.value).__name__)


class UnrecognizedField(ConfigError):
  """The input has a key that the settings class does not declare."""

  def __str__(self):
    return '{} has no field named {}'.format(self.class_name, self.field_name)


class WrongType(ConfigError):
  """A value cannot be used as the declared type of its field."""

  def __str__(self):
    return '{}.{} must be a {}'.format(
        self.class_name, self.field_name, self.field.get_type_name())


class MissingRequiredField(ConfigError):
  """A required field was absent or null."""

  def __str__(self):
    return '{}.{} is required ({})'.format(
        self.class_name, self.field_name, self.field.get_type_name())


class MalformedField(ConfigError):
  """A value has the right type but fails its field's validation."""

  def __init__(self, class_ref, field_name, field, reason):
    super().__init__(class_ref, field_name, field)
    self.reason = reason

  def __str__(self):
    return '{}.{} is malformed: {}'.format(
        self.class_name, self.field_name, self.reason)


class ValidatingType(metaclass=abc.ABCMeta):
  """A field type that only accepts some values of an underlying type.

  validate() raises TypeError for the wrong underlying type and ValueError for
  a rejected value.  name() describes accepted values for error messages.
  """

  @staticmethod
  @abc.abstractmethod
  def validate(value: Any) -> None:
    pass

  @staticmethod
  @abc.abstractmethod
  def name() -> str:
    pass


FieldType = TypeVar('FieldType')


class Field(Generic[FieldType]):
  """Declares one settings field: its type, and whether it has a fallback."""

  def __init__(self,
               type: Optional[Type[FieldType]],
               required: bool = False,
               default: Optional[FieldType] = None) -> None:
    self.type: Optional[Type] = type
    self.required: bool = required
    self.default: Optional[FieldType] = default

  def get_type_name(self) -> str:
    if self.type is None:
      return 'None'
    if self.type is str:
      return 'string'
    if self.type is bool:
      return 'boolean'
    if issubclass(self.type, enum.Enum):
      choices = ', '.join(repr(str(member.value)) for member in self.type)
      return '{} (one of {})'.format(self.type.__name__, choices)
    if issubclass(self.type, ValidatingType):
      return self.type.name()
    return self.type.__name__

  def cast(self) -> FieldType:
    """Lie to mypy about the class attribute's type.

    Instances get plain values in place of these Field objects, so annotating
    the class attribute as FieldType keeps attribute access on instances
    correctly typed.
    """
    return cast(FieldType, self)


class Base(object):
  """Base class for settings objects.  See the module docstring."""

  def __init__(self, dictionary: Dict[str, Any]) -> None:
    if not isinstance(dictionary, dict):
      raise NotADictionary(self.__class__, dictionary)

    declared = {
      key: field for key, field in vars(self.__class__).items()
      if isinstance(field, Field)
    }

    for key in dictionary:
      if key not in declared:
        raise UnrecognizedField(self.__class__, key, Field(None))

    for key, field in declared.items():
      # Null, like an empty YAML value, counts as not given.
      value = dictionary.get(key)
      if value is None:
        if field.required:
          raise MissingRequiredField(self.__class__, key, field)
        value = field.default
      else:
        value = self._convert(field, key, value)
      setattr(self, key, value)

  def _convert(self, field: Field, key: str, value: Any) -> Any:
    """Returns |value| as the type of |field|, or raises a ConfigError.

    Nothing is coerced except scalars given for string fields, since YAML
    turns a file name like 2024 into an int.
    """
    field_type = field.type
    assert field_type is not None, 'Field {} has no type'.format(key)

    if issubclass(field_type, enum.Enum):
      try:
        return field_type(value)
      except ValueError:
        raise WrongType(self.__class__, key, field) from None

    if issubclass(field_type, ValidatingType):
      try:
        field_type.validate(value)
      except TypeError:
        raise WrongType(self.__class__, key, field) from None
      except ValueError as e:
        raise MalformedField(self.__class__, key, field, str(e)) from None
      return value

    if field_type is str:
      if not isinstance(value, (bool, float, int, str)):
        raise WrongType(self.__class__, key, field)
      return str(value)

    # True is an int to Python, but not to a settings file.
    is_bool_for_int = field_type is int and isinstance(value, bool)
    if is_bool_for_int or not isinstance(value, field_type):
      raise WrongType(self.__class__, key, field)
    return value

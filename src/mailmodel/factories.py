"""
Message model factories

Needs factory_boy and Faker, installed with the ``factories`` (or ``dev``)
extra: ``pip install "mailmodel[factories]"``.
"""

import datetime

import factory.fuzzy

from mailmodel import types
from mailmodel.message import Message


class AddressFactory(factory.Factory):
    """A factory to build addresses for testing purposes."""

    class Meta:
        model = types.Address

    name = factory.Sequence(lambda n: f"John Doe{n!s}")
    address = factory.Sequence(lambda n: f"john.doe{n!s}@example.com")


class GroupFactory(factory.Factory):
    """A factory to build mail groups with two members."""

    class Meta:
        model = types.Group

    name = factory.Sequence(lambda n: f"team{n!s}")
    members = factory.List([factory.SubFactory(AddressFactory) for _ in range(2)])


class MessageFactory(factory.Factory):
    """
    A factory to build messages through their public setters.

    Usage: MessageFactory(recipients=[address, group], subject="Hello")
    """

    class Meta:
        model = Message

    sender = factory.SubFactory(AddressFactory)
    recipients = factory.List([factory.SubFactory(AddressFactory)])
    cc_recipients = factory.List([])
    bcc_recipients = factory.List([])
    subject = factory.Faker("sentence", nb_words=4)
    date_time = factory.fuzzy.FuzzyDateTime(
        datetime.datetime(2014, 1, 1, tzinfo=datetime.timezone.utc)
    )

    @classmethod
    def _build(cls, model_class, *args, **kwargs):
        message = model_class()
        for recipient in kwargs.pop("recipients"):
            message.add_recipient(recipient)
        for recipient in kwargs.pop("cc_recipients"):
            message.add_cc_recipient(recipient)
        for recipient in kwargs.pop("bcc_recipients"):
            message.add_bcc_recipient(recipient)
        for field_name, value in kwargs.items():
            setattr(message, field_name, value)
        return message

    @classmethod
    def _create(cls, model_class, *args, **kwargs):
        return cls._build(model_class, *args, **kwargs)

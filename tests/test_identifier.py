from damsim.identifier import ChannelID, Identifiable, Identifier, VerboseIdentifier


class Widget(Identifiable):
    pass


class Named(Identifiable):
    def name(self):
        return "custom"


def test_new_identifiers_are_distinct_and_increasing():
    first = Identifier.new()
    second = Identifier.new()
    assert second.id > first.id
    assert first != second


def test_identifier_str_format():
    assert str(Identifier(5)) == "ID_5"


def test_identifiable_id_is_stable():
    widget = Widget()
    assert Identifiable.id(widget) == Identifiable.id(widget)
    assert Identifiable.id(Widget()) != Identifiable.id(widget)


def test_identifiable_default_name_is_class_name():
    assert Identifiable.name(Widget()) == "Widget"


def test_verbose_combines_id_and_name():
    named = Named()
    verbose = Identifiable.verbose(named)
    assert verbose == VerboseIdentifier(Identifiable.id(named), "custom")


def test_channel_ids_unique_and_ordered():
    a = ChannelID.new()
    b = ChannelID.new()
    assert a < b
    assert len({a, b, ChannelID(a.id)}) == 2


def test_channel_id_str_format():
    assert str(ChannelID(7)) == "Channel(7)"
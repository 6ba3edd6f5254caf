"""
Tests for the channel registry and channel model.
"""

import threading

from ..game.channel_registry import ChannelRegistry, build_snapshot
from ..models.channel import DEFAULT_LOCAL_RADIUS, Channel, ChannelType, TagDefinition
from .mock_providers import standard_channels


class TestChannelModel:
    def test_ids_aliases_and_tags_are_lowercased(self):
        channel = Channel(
            id="Trade",
            type=ChannelType.GLOBAL,
            permission="p",
            commands=("T", "trade", "t", " "),
            tags={"Logo": TagDefinition(id="Logo")},
        )

        assert channel.id == "trade"
        assert channel.commands == ("t", "trade")
        assert channel.get_tag("LOGO") is not None
        assert channel.get_tag("logo").id == "logo"
        assert channel.has_alias("TRADE")

    def test_non_positive_radius_uses_default(self):
        channel = Channel(id="local", type=ChannelType.LOCAL, permission="p", radius=0)
        assert channel.effective_radius == DEFAULT_LOCAL_RADIUS

        channel = Channel(id="local", type=ChannelType.LOCAL, permission="p", radius=-5)
        assert channel.effective_radius == DEFAULT_LOCAL_RADIUS

    def test_blank_tag_permission_means_none(self):
        assert TagDefinition(id="x", permission="  ").permission is None


class TestChannelRegistry:
    def setup_method(self):
        self.registry = ChannelRegistry(standard_channels())

    def test_resolve_is_case_insensitive(self):
        assert self.registry.resolve("GLOBAL").id == "global"
        assert self.registry.resolve("missing") is None
        assert self.registry.resolve("") is None

    def test_all_preserves_insertion_order(self):
        assert [c.id for c in self.registry.all()] == ["local", "global", "staff", "trade"]

    def test_fallback_local_injected_when_missing(self):
        registry = ChannelRegistry(
            [Channel(id="global", type=ChannelType.GLOBAL, permission="p", commands=("g",))]
        )

        local = registry.resolve("local")
        assert local is not None
        assert local.type == ChannelType.LOCAL
        assert local.effective_radius == 100.0
        assert not local.currency.enabled
        assert local.commands == ("l", "local")
        assert registry.ids() == ["global", "local"]

    def test_empty_registry_still_has_local(self):
        assert ChannelRegistry().ids() == ["local"]

    def test_alias_collisions_keep_registry_order(self):
        first = Channel(id="alpha", type=ChannelType.GLOBAL, permission="a", commands=("x",))
        second = Channel(id="beta", type=ChannelType.GLOBAL, permission="b", commands=("X",))
        registry = ChannelRegistry([first, second])

        assert [c.id for c in registry.channels_for_alias("x")] == ["alpha", "beta"]

    def test_duplicate_id_later_definition_wins(self):
        first = Channel(id="global", type=ChannelType.GLOBAL, permission="old", commands=("g",))
        second = Channel(id="global", type=ChannelType.GLOBAL, permission="new", commands=("gg",))
        snapshot = build_snapshot([first, second])

        assert snapshot.by_id["global"].permission == "new"
        assert "g" not in snapshot.aliases
        assert snapshot.aliases["gg"] == ("global",)

    def test_replace_swaps_whole_set(self):
        old_snapshot = self.registry.snapshot()
        self.registry.replace([Channel(id="news", type=ChannelType.GLOBAL, permission="n", commands=("n",))])

        assert "trade" not in self.registry
        assert "news" in self.registry
        assert "local" in self.registry
        # A snapshot taken before the swap is unchanged
        assert "trade" in old_snapshot.by_id
        assert "news" not in old_snapshot.by_id

    def test_readers_never_observe_partial_registry(self):
        set_a = standard_channels()
        set_b = [Channel(id=f"c{i}", type=ChannelType.GLOBAL, permission="p") for i in range(50)]
        expected = {
            frozenset(c.id for c in ChannelRegistry(set_a).all()),
            frozenset(c.id for c in ChannelRegistry(set_b).all()),
        }
        seen: set[frozenset[str]] = set()
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                seen.add(frozenset(c.id for c in self.registry.all()))

        thread = threading.Thread(target=reader)
        thread.start()
        for _ in range(200):
            self.registry.replace(set_b)
            self.registry.replace(set_a)
        stop.set()
        thread.join()

        assert seen <= expected

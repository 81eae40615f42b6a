import unittest

from taskviewer.streaming import SubscriberRegistry, format_sse


class FormatSseTests(unittest.TestCase):
    def test_text_payload(self) -> None:
        self.assertEqual(format_sse("ping", "connected"), "event: ping\ndata: connected\n\n")

    def test_dict_payload_is_compact_json(self) -> None:
        self.assertEqual(
            format_sse("task-updated", {"taskId": "1", "listId": "abc"}),
            'event: task-updated\ndata: {"taskId":"1","listId":"abc"}\n\n',
        )

    def test_multiline_and_empty_payloads(self) -> None:
        self.assertEqual(format_sse("note", "a\nb"), "event: note\ndata: a\ndata: b\n\n")
        self.assertEqual(format_sse("note", ""), "event: note\ndata: \n\n")


class SubscriberRegistryTests(unittest.IsolatedAsyncioTestCase):
    async def test_register_and_unregister(self) -> None:
        registry = SubscriberRegistry()

        first = await registry.register("list-1")
        second = await registry.register("list-1")
        other = await registry.register("list-2")

        self.assertEqual(registry.counts(), {"list-1": 2, "list-2": 1})
        self.assertEqual(registry.total, 3)
        self.assertFalse(first.is_set())

        await registry.unregister("list-1", first)
        await registry.unregister("list-2", other)
        await registry.unregister("list-2", other)

        self.assertEqual(registry.counts(), {"list-1": 1})
        self.assertFalse(second.is_set())

    async def test_close_all_stops_every_subscription(self) -> None:
        registry = SubscriberRegistry()
        first = await registry.register("list-1")
        second = await registry.register("list-2")

        await registry.close_all()

        self.assertTrue(first.is_set())
        self.assertTrue(second.is_set())
        self.assertEqual(registry.total, 0)

        late = await registry.register("list-1")
        self.assertTrue(late.is_set())
        self.assertEqual(registry.total, 0)


if __name__ == "__main__":
    unittest.main()

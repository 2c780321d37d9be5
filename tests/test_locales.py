import pytest

from conftest import FakeChat
from liveu_stats_bot.locales import LOCALES, is_supported, translate
from liveu_stats_bot.notifications import ChatNotifier


def test_translate_formats_parameters():
    assert translate("stats.total", "en", bitrate=1234) == "Total LRT: 1234 Kbps"
    assert translate("battery.estimate", "de", time="1h 5m") == "Geschätzte Laufzeit: 1h 5m"


def test_translate_falls_back_to_english():
    assert translate("stats.total", "de", bitrate=10) == "Total LRT: 10 Kbps"
    assert translate("stats.offline", "fr") == "LiveU Offline :("
    assert translate("no.such.key") == "no.such.key"


def test_every_locale_only_defines_known_keys():
    english = set(LOCALES["en"])
    for lang, table in LOCALES.items():
        assert set(table) <= english, lang


def test_is_supported():
    assert is_supported("EN")
    assert is_supported("de")
    assert not is_supported("fr")


@pytest.mark.asyncio
async def test_notifier_skips_empty_text_and_swallows_send_errors():
    chat = FakeChat()
    notifier = ChatNotifier(chat, "streamer")

    await notifier.notify("")
    await notifier.notify("hello")
    chat.fail_sends = True
    await notifier.notify("lost")

    assert notifier.channel == "streamer"
    assert chat.sent == [("streamer", "hello")]

import pytest
from PIL import Image

from orderdesk.errors import MenuItemNotFound
from orderdesk.menu import DEFAULT_MENU, MenuCatalog
from orderdesk.menu_modal import parse_price
from orderdesk.models import ShopProfile
from orderdesk.shop import ShopSettings, decode_logo, logo_data_url


def test_menu_seeded_with_default():
    menu = MenuCatalog()
    assert menu.items() == list(DEFAULT_MENU)
    assert menu.get("m1").price == 250.0


def test_menu_add_update_delete_notify():
    menu = MenuCatalog([])
    seen = []
    menu.subscribe(lambda items: seen.append([i.name for i in items]))
    first = menu.add("Dal", 120)
    second = menu.add("  Naan ", 30)
    assert first.id.startswith("m_") and first.id != second.id
    assert [i.name for i in menu] == ["Naan", "Dal"]
    menu.update(first.id, name="Dal Makhani")
    assert menu.delete(second.id) is True
    assert menu.delete(second.id) is False
    assert seen == [["Dal"], ["Naan", "Dal"], ["Naan", "Dal Makhani"], ["Dal Makhani"]]


def test_menu_rejects_bad_items():
    menu = MenuCatalog([])
    with pytest.raises(ValueError):
        menu.add("", 10)
    with pytest.raises(ValueError):
        menu.add("Tea", -1)
    with pytest.raises(MenuItemNotFound):
        menu.update("m_missing", price=1.0)


def test_shop_save_replaces_profile_and_notifies():
    shop = ShopSettings()
    seen = []
    shop.subscribe(seen.append)
    saved = shop.save(ShopProfile(name="Desk Diner", phone="555", tax_number="T-1"))
    assert shop.profile == saved
    assert seen == [saved]
    returned = shop.profile
    returned.name = "mutated"
    assert shop.profile.name == "Desk Diner"


def test_logo_data_url_round_trip(tmp_path):
    path = tmp_path / "logo.bmp"
    Image.new("RGB", (20, 10), color=(255, 0, 0)).save(path)
    url = logo_data_url(path)
    assert url.startswith("data:image/png;base64,")
    assert decode_logo(url).size == (20, 10)


def test_logo_errors_are_value_errors(tmp_path):
    bogus = tmp_path / "logo.png"
    bogus.write_text("not an image")
    with pytest.raises(ValueError):
        logo_data_url(bogus)
    with pytest.raises(ValueError):
        decode_logo("data:image/png;base64,AAAA")


def test_menu_price_field_parsing():
    assert parse_price(" 12.5 ") == 12.5
    with pytest.raises(ValueError, match="not a number"):
        parse_price("twelve")


def test_menu_update_and_delete_are_persisted(state, kv):
    item = state.menu.add("Dal", 120)
    state.menu.update(item.id, name="Dal Makhani", price=140.0)
    assert kv.load("menu")[0] == {"id": item.id, "name": "Dal Makhani", "price": 140.0}
    state.menu.delete(item.id)
    assert [raw["id"] for raw in kv.load("menu")] == ["m1"]

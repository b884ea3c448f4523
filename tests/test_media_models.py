from storefront_media.models.media import (
    EncodedResult,
    ImageReference,
    SizeClass,
    TranscodePath,
    first_product_image,
)


def test_size_classes_are_totally_ordered_by_box():
    ordered = [SizeClass.SMALL, SizeClass.MEDIUM, SizeClass.LARGE, SizeClass.GRANDE]
    assert sorted(reversed(ordered)) == ordered
    boxes = [size.box for size in ordered]
    assert boxes == sorted(boxes)
    assert len(set(boxes)) == len(boxes)


def test_size_class_comparisons_follow_box_order():
    assert SizeClass.GRANDE > SizeClass.LARGE > SizeClass.MEDIUM > SizeClass.SMALL
    assert SizeClass.SMALL <= SizeClass.SMALL <= SizeClass.MEDIUM
    assert SizeClass.GRANDE >= SizeClass.LARGE
    assert not SizeClass.SMALL >= SizeClass.MEDIUM
    assert max(SizeClass) is SizeClass.GRANDE
    assert min(SizeClass) is SizeClass.SMALL


def test_size_class_parse():
    assert SizeClass.parse("Grande") is SizeClass.GRANDE
    assert SizeClass.parse(SizeClass.SMALL) is SizeClass.SMALL
    assert SizeClass.parse("huge") is SizeClass.MEDIUM
    assert SizeClass.parse(42) is SizeClass.MEDIUM


def test_first_product_image_reads_catalog_node():
    product = {
        "title": "Shirt",
        "images": {"edges": [
            {"node": {"url": "https://cdn.shopify.com/a.jpg", "altText": "front", "width": 800, "height": 600}},
            {"node": {"url": "https://cdn.shopify.com/b.jpg"}},
        ]},
    }
    ref = first_product_image(product)
    assert ref == ImageReference(url="https://cdn.shopify.com/a.jpg", width=800, height=600, alt_text="front")
    assert not ref.missing


def test_first_product_image_without_images_is_missing():
    assert first_product_image({"images": {"edges": []}}).missing
    assert first_product_image({}).missing
    assert first_product_image(None).missing


def test_converted_to_labels():
    base = dict(data=b"x", mime_type="image/png", original_format="image/webp")
    assert EncodedResult(quality="original", path=TranscodePath.ORIGINAL, **base).converted_to is None
    assert EncodedResult(quality="lossless", path=TranscodePath.LOSSLESS, **base).converted_to == "PNG"
    lossy = EncodedResult(quality=75, path=TranscodePath.LOSSY, **base)
    assert lossy.converted_to == "JPG (PNG was too large)"
    assert lossy.byte_length == 1

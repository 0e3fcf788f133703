def product_ids(response):
    return sorted(p["id"] for p in response.json()["products"])

def test_category_page_with_breadcrumb_and_children(client, seeded):
    r = client.get("/api/categories/men")
    assert r.status_code == 200
    body = r.json()
    assert body["category"]["slug"] == "men"
    assert body["ancestorPath"] == []
    assert [c["slug"] for c in body["childCategories"]] == ["men-shirts", "men-shoes"]
    assert body["path"] == "Men"

    r = client.get("/api/categories/men-shirts-formal")
    body = r.json()
    assert [c["slug"] for c in body["ancestorPath"]] == ["men", "men-shirts"]
    assert body["category"]["parentId"] == 2
    assert body["childCategories"] == []
    assert body["path"] == "Men > Shirts > Formal"

def test_unknown_category_is_404(client, seeded):
    r = client.get("/api/categories/kids")
    assert r.status_code == 404
    assert r.json() == {"detail": "categories.get.not_found", "message": "Category not found"}

    r = client.get("/api/categories/kids/products")
    assert r.status_code == 404

def test_category_tree(client, seeded):
    r = client.get("/api/categories/tree")
    assert r.status_code == 200
    tree = r.json()
    assert [root["slug"] for root in tree] == ["men", "women"]
    men = tree[0]
    assert [child["slug"] for child in men["children"]] == ["men-shirts", "men-shoes"]
    assert [child["slug"] for child in men["children"][0]["children"]] == ["men-shirts-formal"]

def test_category_products_cover_subcategories(client, seeded):
    r = client.get("/api/categories/men/products")
    assert r.status_code == 200
    assert product_ids(r) == [10, 11, 12, 14]
    assert r.json()["pagination"]["totalItems"] == 4

    r = client.get("/api/categories/men-shirts/products")
    assert product_ids(r) == [11, 14]

    r = client.get("/api/categories/women/products")
    assert product_ids(r) == [13]

def test_category_products_price_bounds_are_inclusive(client, seeded):
    r = client.get("/api/categories/men/products", params={"minPrice": 1000, "maxPrice": 5000})
    assert product_ids(r) == [10, 11]

    r = client.get("/api/categories/women/products", params={"minPrice": 1000, "maxPrice": 5000})
    assert product_ids(r) == [13]

def test_category_products_pagination(client, seeded):
    r = client.get("/api/categories/men/products", params={"limit": 3, "page": 2})
    body = r.json()
    assert len(body["products"]) == 1
    assert body["pagination"] == {"currentPage": 2, "totalPages": 2, "totalItems": 4, "itemsPerPage": 3}

def test_invalid_price_filters(client, seeded):
    r = client.get("/api/categories/men/products", params={"minPrice": "abc"})
    assert r.status_code == 422

    r = client.get("/api/categories/men/products", params={"minPrice": 50, "maxPrice": 10})
    assert r.status_code == 400
    assert r.json()["detail"] == "products.list.invalid_price_range"

def test_admin_routes_require_admin_role(client, seeded, customer_headers):
    assert client.get("/api/admin/categories").status_code == 401
    assert client.get("/api/admin/categories", headers={"Authorization": "Bearer nope"}).status_code == 401
    assert client.get("/api/admin/categories", headers=customer_headers).status_code == 403

def test_admin_list_has_counts(client, seeded, admin_headers):
    r = client.get("/api/admin/categories", headers=admin_headers)
    assert r.status_code == 200
    by_slug = {c["slug"]: c for c in r.json()}
    assert by_slug["men"]["productsCount"] == 1
    assert by_slug["men"]["childrenCount"] == 2
    assert by_slug["men-shoes"]["childrenCount"] == 0

    r = client.get("/api/admin/categories/2", headers=admin_headers)
    assert r.json()["productsCount"] == 1
    assert client.get("/api/admin/categories/999", headers=admin_headers).status_code == 404

def test_create_category_invalidates_cache(client, seeded, admin_headers):
    # Premier appel : remplit le cache
    assert "kids" not in [c["slug"] for c in client.get("/api/categories").json()]

    r = client.post("/api/admin/categories", json={"name": "Kids", "slug": "kids"}, headers=admin_headers)
    assert r.status_code == 201
    assert r.json()["parentId"] is None

    assert "kids" in [c["slug"] for c in client.get("/api/categories").json()]
    assert client.get("/api/categories/kids").status_code == 200

def test_create_category_validation(client, seeded, admin_headers):
    r = client.post("/api/admin/categories", json={"name": "Men again", "slug": "men"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "categories.create.already_exists"

    r = client.post("/api/admin/categories", json={"name": "Ghost", "slug": "ghost", "parentId": 999},
                    headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "categories.create.parent_not_found"

    r = client.post("/api/admin/categories", json={"name": "Bad", "slug": "Bad Slug"}, headers=admin_headers)
    assert r.status_code == 422

def test_update_category_moves_subtree(client, seeded, admin_headers):
    r = client.put("/api/admin/categories/3", json={"name": "Shoes", "slug": "men-shoes", "parentId": 4},
                   headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["parentId"] == 4

    assert product_ids(client.get("/api/categories/women/products")) == [12, 13]
    assert product_ids(client.get("/api/categories/men/products")) == [10, 11, 14]

def test_update_category_rejects_cycles(client, seeded, admin_headers):
    r = client.put("/api/admin/categories/1", json={"name": "Men", "slug": "men", "parentId": 5},
                   headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["detail"] == "categories.update.cyclic_parent"

    r = client.put("/api/admin/categories/1", json={"name": "Men", "slug": "men", "parentId": 1},
                   headers=admin_headers)
    assert r.status_code == 409

    r = client.put("/api/admin/categories/2", json={"name": "Shirts", "slug": "women"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "categories.update.already_exists"

    r = client.put("/api/admin/categories/999", json={"name": "X", "slug": "x"}, headers=admin_headers)
    assert r.status_code == 404

def test_delete_category_is_blocked_by_products_and_children(client, seeded, admin_headers):
    r = client.delete("/api/admin/categories/1", headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["detail"] == "categories.delete.has_products"

    parent = client.post("/api/admin/categories", json={"name": "Kids", "slug": "kids"}, headers=admin_headers).json()
    child = client.post("/api/admin/categories", json={"name": "Kids shoes", "slug": "kids-shoes",
                                                       "parentId": parent["id"]}, headers=admin_headers).json()

    r = client.delete(f"/api/admin/categories/{parent['id']}", headers=admin_headers)
    assert r.status_code == 409
    assert r.json()["detail"] == "categories.delete.has_children"

    assert client.delete(f"/api/admin/categories/{child['id']}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/admin/categories/{parent['id']}", headers=admin_headers).status_code == 200
    assert client.get("/api/categories/kids").status_code == 404
    assert client.delete("/api/admin/categories/999", headers=admin_headers).status_code == 404

def test_update_category_without_parent_keeps_it(client, seeded, admin_headers):
    r = client.put("/api/admin/categories/2", json={"name": "Shirts!", "slug": "men-shirts"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["name"] == "Shirts!"
    assert r.json()["parentId"] == 1
    assert product_ids(client.get("/api/categories/men/products")) == [10, 11, 12, 14]

    # null explicite : la catégorie devient racine
    r = client.put("/api/admin/categories/2", json={"name": "Shirts", "slug": "men-shirts", "parentId": None},
                   headers=admin_headers)
    assert r.json()["parentId"] is None

def test_tree_slug_is_reserved(client, seeded, admin_headers):
    r = client.post("/api/admin/categories", json={"name": "Tree", "slug": "tree"}, headers=admin_headers)
    assert r.status_code == 422
    r = client.put("/api/admin/categories/4", json={"name": "Women", "slug": "Tree"}, headers=admin_headers)
    assert r.status_code == 422

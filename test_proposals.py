"""
test_proposals.py — Proposal admin, public quote cart and acceptance flow.
Run: pytest test_proposals.py -v
"""
from types import SimpleNamespace

import pytest

from app import create_app, db
from app.auth.models import User, RoleEnum
from app.catalog.models import Service
from app.proposals.models import Proposal, generate_slug


# ── Fixtures ──────────────────────────────────────────────────────

@pytest.fixture
def client():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        admin = User(username='admin', name='Admin', role=RoleEnum.admin)
        admin.set_password('admin123')
        db.session.add(admin)
        db.session.add_all([
            Service(name='The Foundation',    type='pricing',     base_price='$3,000', display_order=1),
            Service(name='The Growth Engine', type='pricing',     base_price='$4,000', display_order=2),
            Service(name='Growth Lease',      type='lease',       base_price='$299/mo', display_order=3),
            Service(name='Growth Care',       type='maintenance', base_price='$150/mo', display_order=4),
            Service(name='Local SEO Boost',   type='addon',       base_price='$150/month', display_order=5),
            Service(name='Design time',       type='addon',       base_price='$75/hr', display_order=6),
        ])
        db.session.commit()

        yield app.test_client()

        db.session.remove()
        db.drop_all()


def login(c):
    resp = c.post('/auth/login', json={'username': 'admin', 'password': 'admin123'})
    assert resp.status_code == 200


def service_id(name):
    return Service.query.filter_by(name=name).first().id


def new_proposal(c, **fields):
    payload = {'client_name': 'CBT Baltimore', 'industry': 'Therapy'}
    payload.update(fields)
    resp = c.post('/api/admin/proposals/', json=payload)
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=''):
        self.status_code = status_code
        self._payload = payload
        self.text = text

    def json(self):
        if self._payload is None:
            raise ValueError('no json')
        return self._payload


@pytest.fixture
def sent(client, monkeypatch):
    """Enable email and capture every Resend call."""
    calls = []

    def fake_post(url, json=None, headers=None, timeout=None):
        calls.append({'url': url, 'json': json, 'headers': headers})
        return FakeResponse(200, {'id': f'email-{len(calls)}'})

    client.application.config['RESEND_API_KEY'] = 're_test'
    monkeypatch.setattr('app.notifications.email.requests.post', fake_post)
    return calls


# ── 1. Slugs ──────────────────────────────────────────────────────

@pytest.mark.parametrize('name, slug', [
    ('CBT Baltimore',        'cbt-baltimore'),
    ('  Harbor & Sons, LLC ', 'harbor-sons-llc'),
    ('Ünïcode Café',         'n-code-caf'),
    ('!!!',                  ''),
])
def test_generate_slug(name, slug):
    assert generate_slug(name) == slug


def test_create_assigns_unique_slugs(client):
    login(client)
    first  = new_proposal(client)
    second = new_proposal(client)
    third  = new_proposal(client, slug='Custom Slug')
    assert first['slug'] == 'cbt-baltimore'
    assert second['slug'] == 'cbt-baltimore-1'
    assert third['slug'] == 'custom-slug'
    assert first['status'] == 'draft'
    assert first['selected_services'] == {
        'pricingPlan': None, 'leasePlan': None, 'maintenancePlan': None, 'addons': [],
    }


def test_create_requires_client_name(client):
    login(client)
    resp = client.post('/api/admin/proposals/', json={'industry': 'Dental'})
    assert resp.status_code == 400
    assert 'client_name' in resp.get_json()['errors']


def test_admin_routes_require_login(client):
    assert client.get('/api/admin/proposals/').status_code == 401
    assert client.post('/api/admin/proposals/', json={'client_name': 'X'}).status_code == 401


# ── 2. Admin CRUD ─────────────────────────────────────────────────

def test_list_filter_and_lookup_by_slug(client):
    login(client)
    a = new_proposal(client, client_name='Alpha')
    new_proposal(client, client_name='Beta', status='sent')

    rows = client.get('/api/admin/proposals/').get_json()
    assert [r['client_name'] for r in rows] == ['Beta', 'Alpha']

    sent_rows = client.get('/api/admin/proposals/?status=sent').get_json()
    assert [r['client_name'] for r in sent_rows] == ['Beta']

    by_slug = client.get('/api/admin/proposals/?slug=alpha').get_json()
    assert by_slug['id'] == a['id']
    assert client.get('/api/admin/proposals/?slug=nope').status_code == 404


def test_update_fields_status_and_slug(client):
    login(client)
    p = new_proposal(client)
    new_proposal(client, client_name='Taken')

    resp = client.put(f"/api/admin/proposals/{p['id']}", json={
        'core_problem': 'No leads from search', 'status': 'sent', 'slug': 'taken',
    })
    data = resp.get_json()
    assert resp.status_code == 200
    assert data['core_problem'] == 'No leads from search'
    assert data['status'] == 'sent'
    assert data['slug'] == 'taken-1'


def test_update_rejects_bad_status_and_cart(client):
    login(client)
    p = new_proposal(client)
    resp = client.put(f"/api/admin/proposals/{p['id']}", json={
        'status': 'won', 'selected_services': ['not', 'a', 'cart'],
    })
    assert resp.status_code == 400
    assert set(resp.get_json()['errors']) == {'status', 'selected_services'}
    assert client.get(f"/api/admin/proposals/{p['id']}").get_json()['status'] == 'draft'


def test_update_stores_cart_verbatim(client):
    login(client)
    p = new_proposal(client)
    cart = {
        'pricingPlan': {'id': '1', 'name': 'The Foundation', 'price': '$3,000',
                        'type': 'pricing', 'recurring': False},
        'leasePlan': None, 'maintenancePlan': None, 'addons': [],
    }
    resp = client.put(f"/api/admin/proposals/{p['id']}", json={'selected_services': cart})
    assert resp.get_json()['selected_services'] == cart


def test_delete_proposal(client):
    login(client)
    p = new_proposal(client)
    assert client.delete(f"/api/admin/proposals/{p['id']}").status_code == 204
    assert client.get(f"/api/admin/proposals/{p['id']}").status_code == 404


# ── 3. Admin builder ──────────────────────────────────────────────

def test_toggle_builds_stored_cart(client):
    login(client)
    p = new_proposal(client)
    url = f"/api/admin/proposals/{p['id']}/toggle"

    data = client.post(url, json={'service_id': service_id('The Foundation')}).get_json()
    assert data['totals']['grandTotal'] == 3600
    assert data['itemCount'] == 1

    # Lease replaces the build plan
    data = client.post(url, json={'service_id': service_id('Growth Lease')}).get_json()
    assert data['cart']['pricingPlan'] is None
    assert data['cart']['leasePlan']['name'] == 'Growth Lease'
    assert data['totals']['monthlyTotal'] == 349

    # Toggling again deselects
    data = client.post(url, json={'service_id': service_id('Growth Lease')}).get_json()
    assert data['itemCount'] == 0
    assert data['showTotals'] is False

    stored = db.session.get(Proposal, p['id']).cart
    assert stored.is_empty


def test_toggle_with_discount_and_unknown_service(client):
    login(client)
    p = new_proposal(client)
    url = f"/api/admin/proposals/{p['id']}/toggle"
    data = client.post(url, json={'service_id': service_id('The Growth Engine'),
                                  'discount': True}).get_json()
    assert data['cart']['pricingPlan']['price'] == '$3,600'
    assert data['totals']['paymentSchedule'] == {'downPayment': 1800, 'onCompletion': 1800}

    assert client.post(url, json={'service_id': 999}).status_code == 404
    assert client.post(url, json={'service_id': 'abc'}).status_code == 404


def test_admin_quote_lists_catalog_with_selection(client):
    login(client)
    p = new_proposal(client)
    client.post(f"/api/admin/proposals/{p['id']}/toggle",
                json={'service_id': service_id('Growth Care')})

    data = client.get(f"/api/admin/proposals/{p['id']}/quote").get_json()
    care = data['services']['maintenance'][0]
    assert care['selected'] is True
    assert all(not s['selected'] for s in data['services']['pricing'])
    # Admin builder shows list prices
    assert data['services']['pricing'][1]['cart_item']['price'] == '$4,000'


# ── 4. Executive summary ──────────────────────────────────────────

def test_summary_unavailable_without_api_key(client):
    login(client)
    p = new_proposal(client)
    resp = client.post(f"/api/admin/proposals/{p['id']}/summary")
    assert resp.status_code == 503


def test_summary_is_saved(client, monkeypatch):
    login(client)
    p = new_proposal(client)
    monkeypatch.setattr('app.proposals.routes.generate_summary',
                        lambda client, industry, problem: f'Summary for {client}')
    resp = client.post(f"/api/admin/proposals/{p['id']}/summary")
    assert resp.status_code == 200
    assert resp.get_json()['generated_summary'] == 'Summary for CBT Baltimore'


def test_generate_summary_calls_claude(client, monkeypatch):
    from app.proposals.summary import generate_summary

    captured = {}

    class FakeMessages:
        def create(self, **kwargs):
            captured.update(kwargs)
            return SimpleNamespace(content=[
                SimpleNamespace(type='text', text='Paragraph one.\n\nParagraph two.'),
            ])

    class FakeAnthropic:
        def __init__(self, api_key):
            captured['api_key'] = api_key
            self.messages = FakeMessages()

    monkeypatch.setattr('app.proposals.summary.anthropic.Anthropic', FakeAnthropic)
    client.application.config['ANTHROPIC_API_KEY'] = 'sk-test'

    text = generate_summary('CBT Baltimore', 'Therapy', 'Invisible in local search')
    assert text == 'Paragraph one.\n\nParagraph two.'
    assert captured['api_key'] == 'sk-test'
    assert captured['model'] == client.application.config['SUMMARY_MODEL']
    assert 'Industry: Therapy' in captured['messages'][0]['content']


# ── 5. Public proposal page & visitor cart ────────────────────────

def test_public_view_hides_contact_and_discounts_build_tiers(client):
    login(client)
    p = new_proposal(client)
    client.post('/auth/logout')

    data = client.get(f"/api/proposal/{p['slug']}").get_json()
    assert 'contact_email' not in data['proposal']
    prices = [s['cart_item']['price'] for s in data['services']['pricing']]
    assert prices == ['$2,700', '$3,600']
    assert data['itemCount'] == 0
    assert data['showTotals'] is False

    assert client.get('/api/proposal/unknown').status_code == 404


def test_visitor_cart_add_remove_clear(client):
    login(client)
    slug = new_proposal(client)['slug']
    client.post('/auth/logout')
    base = f'/api/proposal/{slug}/cart'

    data = client.post(f'{base}/add', json={'service_id': service_id('The Foundation')}).get_json()
    assert data['openCart'] is True
    assert data['cart']['pricingPlan']['price'] == '$2,700'
    assert data['totals']['grandTotal'] == 2700 + 600

    client.post(f'{base}/add', json={'service_id': service_id('Local SEO Boost')})
    data = client.get(base).get_json()
    assert data['itemCount'] == 2
    assert data['totals']['monthlyTotal'] == 200

    seo_id = str(service_id('Local SEO Boost'))
    data = client.post(f'{base}/remove', json={'id': seo_id, 'slot': 'addon'}).get_json()
    assert data['itemCount'] == 1
    assert data['openCart'] is False

    data = client.post(f'{base}/clear').get_json()
    assert data['itemCount'] == 0
    assert client.get(base).get_json()['itemCount'] == 0


def test_visitor_cart_starts_from_saved_selection(client):
    login(client)
    p = new_proposal(client)
    client.post(f"/api/admin/proposals/{p['id']}/toggle",
                json={'service_id': service_id('Growth Care')})
    client.post('/auth/logout')

    data = client.get(f"/api/proposal/{p['slug']}/cart").get_json()
    assert data['cart']['maintenancePlan']['name'] == 'Growth Care'
    assert data['totals']['monthlyTotal'] == 150


def test_cart_add_with_raw_item_and_slot_checks(client):
    login(client)
    slug = new_proposal(client)['slug']
    base = f'/api/proposal/{slug}/cart'
    item = {'id': 'custom-1', 'name': 'Logo refresh', 'price': '$400', 'type': 'addon'}

    data = client.post(f'{base}/add', json={'item': item, 'slot': 'addon'}).get_json()
    assert data['totals']['oneTimeTotal'] == 400

    assert client.post(f'{base}/add', json={'item': item, 'slot': 'pricing'}).status_code == 400
    assert client.post(f'{base}/add', json={'item': {'name': 'no id'}}).status_code == 400
    assert client.post(f'{base}/add', json={'item': dict(item, type='bundle')}).status_code == 400
    assert client.post(f'{base}/add', json={}).status_code == 400
    assert client.post(f'{base}/add', json={'service_id': 999}).status_code == 404
    assert client.post(f'{base}/remove', json={'id': 'x', 'slot': 'bundle'}).status_code == 400


# ── 6. Acceptance ─────────────────────────────────────────────────

def _fill_cart(c, slug):
    c.post(f'/api/proposal/{slug}/cart/add', json={'service_id': service_id('The Growth Engine')})
    c.post(f'/api/proposal/{slug}/cart/add', json={'service_id': service_id('Growth Care')})


def test_accept_sends_emails_and_records_contact(client, sent):
    login(client)
    p = new_proposal(client)
    client.post('/auth/logout')
    _fill_cart(client, p['slug'])

    resp = client.post(f"/api/proposal/{p['slug']}/accept", json={
        'contactName': 'Dana', 'email': 'dana@cbt.example', 'phone': '555-0100',
        'notes': 'Start in May',
    })
    assert resp.status_code == 200
    assert resp.get_json() == {
        'success': True, 'message': 'Proposal accepted successfully',
        'teamEmailId': 'email-1', 'clientEmailId': 'email-2',
    }

    team, prospect = sent
    assert team['json']['to'] == ['team@example.com']
    assert team['json']['subject'] == 'New Proposal Accepted: CBT Baltimore'
    assert team['headers']['Authorization'] == 'Bearer re_test'
    assert '$3,600' in team['json']['html']
    assert 'Start in May' in team['json']['html']
    assert prospect['json']['to'] == ['dana@cbt.example']
    assert prospect['json']['subject'] == 'Proposal Accepted - CBT Baltimore'

    proposal = db.session.get(Proposal, p['id'])
    assert proposal.status == 'accepted'
    assert proposal.contact_email == 'dana@cbt.example'
    assert proposal.accepted_at is not None
    assert proposal.cart.pricing_plan.price == '$3,600'

    # Session cart is cleared; the page now shows the accepted selection
    assert client.get(f"/api/proposal/{p['slug']}/cart").get_json()['itemCount'] == 2


def test_accept_without_email_configured_still_succeeds(client):
    login(client)
    slug = new_proposal(client)['slug']
    _fill_cart(client, slug)
    resp = client.post(f'/api/proposal/{slug}/accept',
                       json={'contactName': 'Dana', 'email': 'dana@cbt.example'})
    assert resp.status_code == 200
    assert resp.get_json()['teamEmailId'] is None


def test_accept_validates_contact_fields(client, sent):
    login(client)
    slug = new_proposal(client)['slug']
    _fill_cart(client, slug)
    resp = client.post(f'/api/proposal/{slug}/accept',
                       json={'contactName': ' ', 'email': 'not-an-email'})
    assert resp.status_code == 400
    body = resp.get_json()
    assert body['error'] == 'Missing required fields'
    assert set(body['errors']) == {'contactName', 'email'}
    assert sent == []


def test_accept_rejects_empty_quote(client, sent):
    login(client)
    slug = new_proposal(client)['slug']
    client.post(f'/api/proposal/{slug}/cart/add', json={'service_id': service_id('Design time')})
    resp = client.post(f'/api/proposal/{slug}/accept',
                       json={'contactName': 'Dana', 'email': 'dana@cbt.example'})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Your quote is empty'
    assert sent == []


def test_accept_reports_email_failure(client, monkeypatch):
    login(client)
    p = new_proposal(client)
    _fill_cart(client, p['slug'])
    client.application.config['RESEND_API_KEY'] = 're_test'
    monkeypatch.setattr('app.notifications.email.requests.post',
                        lambda *a, **kw: FakeResponse(422, text='invalid from'))

    resp = client.post(f"/api/proposal/{p['slug']}/accept",
                       json={'contactName': 'Dana', 'email': 'dana@cbt.example'})
    assert resp.status_code == 502
    assert resp.get_json()['error'] == 'Failed to send emails'
    assert db.session.get(Proposal, p['id']).status == 'draft'


def test_failed_confirmation_still_accepts_once(client, monkeypatch):
    login(client)
    p = new_proposal(client)
    _fill_cart(client, p['slug'])
    client.application.config['RESEND_API_KEY'] = 're_test'
    calls = []

    def team_ok_client_down(url, json=None, headers=None, timeout=None):
        calls.append(json['to'])
        if json['to'] == ['team@example.com']:
            return FakeResponse(200, {'id': 'team-1'})
        return FakeResponse(500, text='upstream down')

    monkeypatch.setattr('app.notifications.email.requests.post', team_ok_client_down)

    resp = client.post(f"/api/proposal/{p['slug']}/accept",
                       json={'contactName': 'Dana', 'email': 'dana@cbt.example'})
    assert resp.status_code == 200
    assert resp.get_json()['teamEmailId'] == 'team-1'
    assert resp.get_json()['clientEmailId'] is None
    assert calls == [['team@example.com'], ['dana@cbt.example']]
    assert db.session.get(Proposal, p['id']).status == 'accepted'


# ── 7. Standalone submit ──────────────────────────────────────────

SUMMARY = {
    'pricingPlan': {'id': 'pricing-foundation', 'name': 'The Foundation', 'price': '$3,000',
                    'type': 'pricing', 'recurring': False},
    'leasePlan': None,
    'maintenancePlan': None,
    'addons': [],
    'totals': {'grandTotal': 1},
}


def test_submit_proposal_recomputes_totals(client, sent):
    resp = client.post('/api/submit-proposal', json={
        'clientName': 'Harbor Dental', 'contactName': 'Sam', 'email': 'sam@harbor.example',
        'proposalSummary': SUMMARY,
    })
    assert resp.status_code == 200
    assert resp.get_json()['success'] is True
    html = sent[0]['json']['html']
    assert '$3,600' in html        # recomputed grand total, not the posted one
    assert '$1,500' in html        # 50% down payment


def test_submit_proposal_requires_client_name(client, sent):
    resp = client.post('/api/submit-proposal', json={
        'contactName': 'Sam', 'email': 'sam@harbor.example', 'proposalSummary': SUMMARY,
    })
    assert resp.status_code == 400
    assert 'clientName' in resp.get_json()['errors']


def test_submit_proposal_rejects_bad_cart(client, sent):
    resp = client.post('/api/submit-proposal', json={
        'clientName': 'Harbor', 'contactName': 'Sam', 'email': 'sam@harbor.example',
        'proposalSummary': ['nope'],
    })
    assert resp.status_code == 400

    mislabeled = {'pricingPlan': {'id': 'seo', 'name': 'Local SEO Boost',
                                  'price': '$150/month', 'type': 'addon'}}
    resp = client.post('/api/submit-proposal', json={
        'clientName': 'Harbor', 'contactName': 'Sam', 'email': 'sam@harbor.example',
        'proposalSummary': mislabeled,
    })
    assert resp.status_code == 400
    assert 'slot' in resp.get_json()['error']
    assert sent == []


@pytest.mark.parametrize('field, value', [
    ('clientName',  5),
    ('contactName', ['Sam']),
    ('email',       {'address': 'sam@harbor.example'}),
])
def test_submit_proposal_rejects_non_text_fields(client, sent, field, value):
    payload = {'clientName': 'Harbor', 'contactName': 'Sam', 'email': 'sam@harbor.example',
               'proposalSummary': SUMMARY}
    payload[field] = value
    resp = client.post('/api/submit-proposal', json=payload)
    assert resp.status_code == 400
    assert field in resp.get_json()['errors']
    assert sent == []


def test_non_object_bodies_are_rejected(client, sent):
    login(client)
    p = new_proposal(client)
    assert client.post('/api/submit-proposal', json=['Harbor']).status_code == 400
    assert client.post(f"/api/proposal/{p['slug']}/accept", json=[1, 2]).status_code == 400
    assert client.post('/api/admin/proposals/', json='CBT').status_code == 400
    assert client.put(f"/api/admin/proposals/{p['id']}", json=[]).status_code == 400
    assert client.post('/api/services/', json=['x']).status_code == 400
    assert client.post('/auth/login', json=['admin']).status_code == 400
    assert sent == []


def test_non_text_proposal_fields_are_rejected(client):
    login(client)
    resp = client.post('/api/admin/proposals/', json={'client_name': {'x': 1}})
    assert resp.status_code == 400
    p = new_proposal(client)
    resp = client.put(f"/api/admin/proposals/{p['id']}", json={'industry': ['Dental'], 'slug': 7})
    assert resp.status_code == 400
    assert 'industry' in resp.get_json()['errors']


# ── 8. Health & dashboard ─────────────────────────────────────────

def test_health(client):
    resp = client.get('/health')
    assert resp.status_code == 200
    assert resp.get_json()['status'] == 'ok'


def test_dashboard_counts(client):
    assert client.get('/api/admin/dashboard').status_code == 401
    login(client)
    new_proposal(client)
    new_proposal(client, status='sent')
    data = client.get('/api/admin/dashboard').get_json()
    assert data['proposals']['draft'] == 1
    assert data['proposals']['sent'] == 1
    assert data['proposals_total'] == 2
    assert data['services'] == 6

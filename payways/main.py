"""
PayWays — simulated global payments with a fraud-risk gate.

Endpoints:
  POST   /v1/auth/register             — create account, open session
  POST   /v1/auth/login                — authenticate, open session
  POST   /v1/auth/logout               — close session (abandons in-flight submission)
  GET    /v1/session                   — active account + screen
  PUT    /v1/session/view              — switch screen (admin gated)
  GET    /v1/payment-methods           — supported methods + presentation
  GET    /v1/countries                 — catalog, sorted by name
  POST   /v1/countries                 — add country (admin)
  PUT    /v1/countries/{code}          — update country (admin)
  DELETE /v1/countries/{code}          — delete country (admin)
  POST   /v1/payments                  — submit payment, returns flow outcome
  GET    /v1/payments                  — history (own, or all for admins)
  GET    /v1/payments/flow             — current submission state
  POST   /v1/payments/flow/acknowledge — dismiss settled/denied result
  POST   /v1/payments/flow/edit        — leave rejected state
  GET    /v1/stats                     — aggregate volume (admin)
  GET    /health                       — health check
  GET    /                             — single-page app
"""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import APIRouter, Cookie, Depends, FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse

from . import __version__, config, db
from .constants import PAYMENT_METHOD_PRESENTATION
from .errors import CountryNotFound, NotAuthenticated, PaywaysError
from .logging_config import get_logger, setup_logging
from .schemas import (
    CountryDetails,
    CountryProfile,
    Credentials,
    FlowStatus,
    PaymentMethodOut,
    PaymentSubmission,
    SessionOut,
    Stats,
    ViewChange,
)
from .session import Session
from .state import AppState

setup_logging()
logger = get_logger(__name__)

START_TS = time.time()


# ── Dependencies ──

def get_state(request: Request) -> AppState:
    return request.app.state.payways


def current_session(
    request: Request,
    payways_session: Optional[str] = Cookie(default=None),
) -> Session:
    session = get_state(request).sessions.get(payways_session)
    if session is None:
        raise NotAuthenticated()
    return session


def admin_session(session: Session = Depends(current_session)) -> Session:
    session.require_admin()
    return session


def _session_out(session: Optional[Session]) -> SessionOut:
    if session is None:
        return SessionOut()
    return SessionOut(account=session.account.public(), screen=session.screen)


def _open_session(state: AppState, response: Response, account, previous: Optional[str] = None) -> SessionOut:
    # A browser holds one session; replace whatever the cookie pointed at.
    state.sessions.close(previous)
    session = state.start_session(account)
    response.set_cookie(config.SESSION_COOKIE, session.token, httponly=True, samesite="lax")
    return _session_out(session)


# ── Auth ──

router = APIRouter()


@router.post("/v1/auth/register", response_model=SessionOut)
async def register(
    body: Credentials,
    response: Response,
    state: AppState = Depends(get_state),
    payways_session: Optional[str] = Cookie(default=None),
):
    account = await state.credentials.register(body.email, body.password)
    return _open_session(state, response, account, payways_session)


@router.post("/v1/auth/login", response_model=SessionOut)
async def login(
    body: Credentials,
    response: Response,
    state: AppState = Depends(get_state),
    payways_session: Optional[str] = Cookie(default=None),
):
    account = state.credentials.authenticate(body.email, body.password)
    logger.info("login", account_id=account.id)
    return _open_session(state, response, account, payways_session)


@router.post("/v1/auth/logout", response_model=SessionOut)
async def logout(
    response: Response,
    state: AppState = Depends(get_state),
    payways_session: Optional[str] = Cookie(default=None),
):
    state.sessions.close(payways_session)
    response.delete_cookie(config.SESSION_COOKIE)
    return SessionOut()


# ── Session / views ──

@router.get("/v1/session", response_model=SessionOut)
async def get_session(request: Request, payways_session: Optional[str] = Cookie(default=None)):
    return _session_out(get_state(request).sessions.get(payways_session))


@router.put("/v1/session/view", response_model=SessionOut)
async def change_view(body: ViewChange, session: Session = Depends(current_session)):
    session.show(body.screen)
    return _session_out(session)


# ── Catalog ──

@router.get("/v1/payment-methods", response_model=list[PaymentMethodOut])
async def list_payment_methods():
    return [
        PaymentMethodOut(method=m, icon=p.icon, label=p.label)
        for m, p in PAYMENT_METHOD_PRESENTATION.items()
    ]


@router.get("/v1/countries", response_model=list[CountryProfile])
async def list_countries(state: AppState = Depends(get_state)):
    return state.catalog.list()


@router.post("/v1/countries", response_model=CountryProfile, status_code=201)
async def add_country(
    body: CountryProfile,
    state: AppState = Depends(get_state),
    _: Session = Depends(admin_session),
):
    return await state.catalog.add(body)


@router.put("/v1/countries/{code}", response_model=CountryProfile)
async def update_country(
    code: str,
    body: CountryDetails,
    state: AppState = Depends(get_state),
    _: Session = Depends(admin_session),
):
    existing = state.catalog.get(code)
    if existing is None:
        raise CountryNotFound()
    profile = CountryProfile(code=existing.code, **body.model_dump())
    return await state.catalog.update(profile)


@router.delete("/v1/countries/{code}")
async def delete_country(
    code: str,
    state: AppState = Depends(get_state),
    _: Session = Depends(admin_session),
):
    await state.catalog.remove(code)
    return {"deleted": code.upper()}


# ── Payments ──

@router.post("/v1/payments", response_model=FlowStatus)
async def submit_payment(
    body: PaymentSubmission,
    session: Session = Depends(current_session),
):
    """
    Run one submission: validate, assess risk, then settle or deny.
    Bad input is a `rejected` outcome (HTTP 200), not an error.
    """
    return await session.flow.submit(session.account, body)


@router.get("/v1/payments")
async def list_payments(
    state: AppState = Depends(get_state),
    session: Session = Depends(current_session),
):
    rows = session.visible_transactions(state.ledger)
    return {"payments": [t.model_dump(mode="json") for t in rows], "count": len(rows)}


@router.get("/v1/payments/flow", response_model=FlowStatus)
async def get_flow(session: Session = Depends(current_session)):
    return session.flow.status()


@router.post("/v1/payments/flow/acknowledge", response_model=FlowStatus)
async def acknowledge_flow(session: Session = Depends(current_session)):
    return session.flow.acknowledge()


@router.post("/v1/payments/flow/edit", response_model=FlowStatus)
async def edit_flow(session: Session = Depends(current_session)):
    return session.flow.edit()


@router.get("/v1/stats", response_model=Stats)
async def get_stats(state: AppState = Depends(get_state), _: Session = Depends(admin_session)):
    return Stats(
        total_transactions=len(state.ledger),
        total_volume=state.ledger.total_volume(),
        countries=len(state.catalog),
    )


# ── Health (always public) ──

@router.get("/health")
async def health(request: Request):
    state = get_state(request)
    return {
        "status": "ok",
        "service": "payways",
        "version": __version__,
        "db_path": db.DB_PATH,
        "risk_gateway_configured": state.gateway.configured,
        "result_display_s": state.display_delay if state.display_delay is not None else config.RESULT_DISPLAY_S,
        "active_sessions": len(state.sessions),
        "uptime_s": int(time.time() - START_TS),
    }


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
async def index():
    """Single-page app: auth, payment, history, admin."""
    return APP_HTML


# ── App ──

def create_app(state: Optional[AppState] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_db = state is None
        if owns_db:
            kv = await db.get_db()
            app.state.payways = await AppState.load(kv)
        logger.info(
            "application_startup",
            version=__version__,
            risk_gateway_configured=app.state.payways.gateway.configured,
        )
        yield
        logger.info("application_shutdown")
        if owns_db:
            await db.close_db()

    app = FastAPI(
        title="PayWays",
        description="Simulated global payments gated by an LLM fraud-risk verdict",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url=None,
    )
    if state is not None:
        app.state.payways = state

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "PUT", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = str(uuid.uuid4())
        start = time.time()
        structlog.contextvars.bind_contextvars(
            request_id=request_id, method=request.method, path=request.url.path
        )
        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            logger.info(
                "request_completed",
                status_code=response.status_code,
                duration_seconds=round(time.time() - start, 4),
            )
            return response
        finally:
            structlog.contextvars.clear_contextvars()

    @app.exception_handler(PaywaysError)
    async def payways_error_handler(request: Request, exc: PaywaysError) -> JSONResponse:
        logger.info("request_refused", error=type(exc).__name__, status_code=exc.status_code)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error("unhandled_exception", error=str(exc), error_type=type(exc).__name__)
        return JSONResponse(
            status_code=500,
            content={"error": "InternalError", "message": "An unexpected error occurred."},
        )

    app.include_router(router)
    return app


# ═══════════════════════════════════════════════════════════════════
#  HTML — single page, plain JS against the JSON API
# ═══════════════════════════════════════════════════════════════════

APP_HTML = """<!DOCTYPE html>
<html lang="en"><head>
<meta charset="UTF-8"><meta name="viewport" content="width=device-width,initial-scale=1.0">
<title>PayWays</title>
<link href="https://fonts.googleapis.com/css2?family=DM+Sans:wght@400;500;600;700&family=JetBrains+Mono:wght@400;500;600;700&display=swap" rel="stylesheet">
<style>
*{box-sizing:border-box;margin:0;padding:0}
body{background:#07070a;color:#e5e5e5;font-family:'DM Sans',system-ui,sans-serif;min-height:100vh}
.wrap{max-width:560px;margin:0 auto;padding:32px 20px}
header{text-align:center;margin-bottom:24px;position:relative}
header h1{font-size:34px;font-weight:700;letter-spacing:-1px}
header p{font-size:14px;color:#737373;margin-top:6px}
.hdr-btns{position:absolute;top:0;right:0;display:flex;gap:6px}
.icon-btn{padding:7px 10px;border-radius:6px;border:1px solid rgba(255,255,255,0.1);background:rgba(255,255,255,0.04);color:#a3a3a3;font-size:13px;cursor:pointer}
.icon-btn:hover{background:rgba(255,255,255,0.08);color:#e5e5e5}
.card{border-radius:12px;border:1px solid rgba(255,255,255,0.06);background:rgba(255,255,255,0.02);overflow:hidden}
.pad{padding:24px}
.tabs{display:flex;border-bottom:1px solid rgba(255,255,255,0.08)}
.tab{flex:1;padding:14px;text-align:center;cursor:pointer;font-size:13px;font-weight:600;color:#737373;border-bottom:2px solid transparent}
.tab.active{color:#e5e5e5;border-bottom-color:#60a5fa}
.count{display:inline-block;margin-left:6px;padding:1px 7px;border-radius:100px;background:rgba(96,165,250,0.15);color:#93c5fd;font-size:11px}
label{display:block;font-size:11px;text-transform:uppercase;letter-spacing:1px;color:#737373;font-weight:600;margin:16px 0 6px}
input,select{width:100%;padding:10px 12px;border-radius:6px;border:1px solid rgba(255,255,255,0.1);background:rgba(255,255,255,0.04);color:#e5e5e5;font-size:14px;font-family:inherit}
.methods{display:grid;grid-template-columns:repeat(auto-fit,minmax(120px,1fr));gap:8px}
.method{padding:12px;border-radius:8px;border:1px solid rgba(255,255,255,0.1);background:rgba(255,255,255,0.03);color:#a3a3a3;cursor:pointer;font-size:13px;font-weight:600;text-align:center}
.method.on{border-color:#60a5fa;color:#e5e5e5;background:rgba(96,165,250,0.1)}
.btn{width:100%;margin-top:22px;padding:12px;border-radius:8px;border:none;background:linear-gradient(135deg,#2563eb,#1d4ed8);color:#fff;font-size:14px;font-weight:700;cursor:pointer}
.btn:hover{filter:brightness(1.15)}
.btn-sm{padding:6px 12px;border-radius:5px;border:1px solid rgba(255,255,255,0.1);background:rgba(255,255,255,0.04);color:#a3a3a3;font-size:12px;font-weight:600;cursor:pointer}
.err{margin-top:14px;padding:10px 14px;border-radius:8px;background:rgba(248,113,113,0.1);border:1px solid rgba(248,113,113,0.25);color:#f87171;font-size:13px}
.hint{margin-bottom:8px;padding:10px 14px;border-radius:8px;background:rgba(96,165,250,0.06);border:1px solid rgba(96,165,250,0.15);color:#93c5fd;font-size:12px}
.link{background:none;border:none;color:#60a5fa;cursor:pointer;font-size:13px;font-weight:600}
.center{text-align:center}
.spin{width:36px;height:36px;margin:24px auto;border-radius:50%;border:3px solid rgba(255,255,255,0.1);border-top-color:#60a5fa;animation:s 0.9s linear infinite}
@keyframes s{to{transform:rotate(360deg)}}
.badge{padding:3px 10px;border-radius:4px;font-size:11px;font-weight:700;font-family:'JetBrains Mono',monospace;text-transform:uppercase}
.low{background:rgba(74,222,128,0.1);color:#4ade80}
.medium{background:rgba(250,204,21,0.1);color:#facc15}
.high{background:rgba(248,113,113,0.1);color:#f87171}
.result h2{font-size:20px;margin:8px 0 16px}
.box{margin-top:14px;padding:14px 16px;border-radius:8px;background:rgba(255,255,255,0.03);border:1px solid rgba(255,255,255,0.06);text-align:left;font-size:13px;color:#a3a3a3;line-height:1.6}
ul.ind{margin:6px 0 0 18px}
.rows{list-style:none}
.rows li{display:flex;justify-content:space-between;align-items:center;padding:14px 0;border-bottom:1px solid rgba(255,255,255,0.04);gap:12px}
.rows .sub{font-size:12px;color:#737373;margin-top:2px}
.mono{font-family:'JetBrains Mono',monospace;font-size:13px}
.stats{display:flex;gap:12px;margin-bottom:20px}
.stat{flex:1;padding:14px 16px;border-radius:8px;border:1px solid rgba(255,255,255,0.06);background:rgba(255,255,255,0.02)}
.stat .l{font-size:10px;text-transform:uppercase;letter-spacing:1px;color:#737373;font-weight:600}
.stat .v{font-size:20px;font-weight:700;font-family:'JetBrains Mono',monospace;margin-top:4px}
.checks{display:grid;grid-template-columns:1fr 1fr;gap:6px}
.checks label{display:flex;gap:8px;align-items:center;margin:0;text-transform:none;letter-spacing:0;font-size:13px;color:#a3a3a3}
.checks input{width:auto}
.empty{text-align:center;padding:40px;color:#525252;font-size:14px}
footer{text-align:center;font-size:12px;color:#404040;margin-top:28px;line-height:1.8}
</style></head><body>
<div class="wrap">
<header>
  <h1>PayWays</h1>
  <p id="tagline">Your trusted global payment partner</p>
  <div class="hdr-btns" id="hdrBtns" style="display:none">
    <button class="icon-btn" id="adminBtn" onclick="toggleAdmin()" style="display:none">⚙ Admin</button>
    <button class="icon-btn" onclick="logout()">Log out</button>
  </div>
</header>
<div class="card" id="main"></div>
<footer>All transactions are simulated for demonstration purposes.</footer>
</div>

<script>
var S={session:null,countries:[],methods:{},displayS:5,form:{country:'',method:'',amount:''},flow:null,timer:null,editing:null};

function esc(s){return String(s==null?'':s).replace(/&/g,'&amp;').replace(/</g,'&lt;').replace(/>/g,'&gt;').replace(/"/g,'&quot;');}
function api(url,opts){
  opts=opts||{};
  opts.credentials='same-origin';
  if(opts.body&&typeof opts.body!=='string'){opts.headers={'Content-Type':'application/json'};opts.body=JSON.stringify(opts.body);}
  return fetch(url,opts).then(function(r){return r.json().then(function(d){return {ok:r.ok,status:r.status,data:d};});});
}
function $(id){return document.getElementById(id);}

function boot(){
  Promise.all([api('/v1/session'),api('/v1/payment-methods'),api('/health')]).then(function(res){
    S.session=res[0].data;
    res[1].data.forEach(function(m){S.methods[m.method]=m;});
    S.displayS=res[2].data.result_display_s||5;
    return loadCountries();
  }).then(render);
}
function loadCountries(){return api('/v1/countries').then(function(r){S.countries=r.data||[];});}
function country(code){for(var i=0;i<S.countries.length;i++){if(S.countries[i].code===code)return S.countries[i];}return null;}
function symbolFor(name){for(var i=0;i<S.countries.length;i++){if(S.countries[i].name===name)return S.countries[i].currency.symbol;}return '';}
function icon(m){return S.methods[m]?S.methods[m].icon:'';}

function render(){
  var acc=S.session&&S.session.account;
  $('hdrBtns').style.display=acc?'flex':'none';
  $('tagline').textContent=acc?'Welcome, '+acc.email:'Your trusted global payment partner';
  $('adminBtn').style.display=acc&&acc.is_admin?'inline-block':'none';
  if(!acc){return renderAuth(true);}
  var sc=S.session.screen;
  $('adminBtn').textContent=sc==='admin'?'← Back to app':'⚙ Admin';
  if(sc==='admin'){return renderAdmin();}
  $('main').innerHTML=
    '<div class="tabs"><div class="tab'+(sc==='payment'?' active':'')+'" onclick="show(&quot;payment&quot;)">New Payment</div>'+
    '<div class="tab'+(sc==='history'?' active':'')+'" onclick="show(&quot;history&quot;)">History<span class="count" id="histCount" style="display:none"></span></div></div>'+
    '<div class="pad" id="panel"></div>';
  api('/v1/payments').then(function(r){if(r.ok&&r.data.count){$('histCount').textContent=r.data.count;$('histCount').style.display='inline-block';}});
  if(sc==='history'){renderHistory();}else{renderPayment();}
}
function show(screen){api('/v1/session/view',{method:'PUT',body:{screen:screen}}).then(function(r){if(r.ok){S.session=r.data;}render();});}
function toggleAdmin(){show(S.session.screen==='admin'?'payment':'admin');}
function logout(){api('/v1/auth/logout',{method:'POST'}).then(function(r){S.session=r.data;S.flow=null;render();});}

// ── Auth ──
function renderAuth(isLogin){
  $('main').innerHTML='<div class="pad"><h2 style="font-size:20px;margin-bottom:12px" class="center">'+(isLogin?'Welcome Back':'Create Account')+'</h2>'+
    '<div class="hint">This is a simulated auth system. Register the administrator address for admin access.</div>'+
    '<label>Email Address</label><input id="email" type="email" placeholder="you@example.com">'+
    '<label>Password</label><input id="password" type="password" placeholder="••••••••">'+
    '<div id="authErr"></div>'+
    '<button class="btn" onclick="submitAuth('+isLogin+')">'+(isLogin?'Log In':'Sign Up')+'</button>'+
    '<p class="center" style="margin-top:16px;font-size:13px;color:#737373">'+(isLogin?"Don't have an account? ":'Already have an account? ')+
    '<button class="link" onclick="renderAuth('+(!isLogin)+')">'+(isLogin?'Sign up':'Log in')+'</button></p></div>';
}
function submitAuth(isLogin){
  var body={email:$('email').value,password:$('password').value};
  api(isLogin?'/v1/auth/login':'/v1/auth/register',{method:'POST',body:body}).then(function(r){
    if(!r.ok){$('authErr').innerHTML='<div class="err">'+esc(r.data.message||'Request failed')+'</div>';return;}
    S.session=r.data;render();
  });
}

// ── Payment ──
function renderPayment(){
  var f=S.flow;
  if(f&&(f.state==='settled'||f.state==='denied')){return renderResult(f);}
  if(!S.countries.length){$('panel').innerHTML='<div class="empty">No countries are available for payments.</div>';return;}
  if(!country(S.form.country)){S.form.country=S.countries[0].code;S.form.method='';}
  var c=country(S.form.country);
  if(c.payment_methods.indexOf(S.form.method)<0){S.form.method='';}
  $('panel').innerHTML=
    '<label>Country</label><select id="country" onchange="editForm(&quot;country&quot;,this.value)">'+
    S.countries.map(function(x){return '<option value="'+esc(x.code)+'"'+(x.code===c.code?' selected':'')+'>'+esc(x.name)+'</option>';}).join('')+'</select>'+
    '<label>Payment Method</label><div class="methods">'+
    c.payment_methods.map(function(m){return '<div class="method'+(m===S.form.method?' on':'')+'" onclick="editForm(&quot;method&quot;,&quot;'+esc(m)+'&quot;)">'+icon(m)+' '+esc(m)+'</div>';}).join('')+'</div>'+
    '<label>Amount ('+esc(c.currency.code)+')</label><input id="amount" type="number" step="0.01" placeholder="0.00" value="'+esc(S.form.amount)+'" oninput="editForm(&quot;amount&quot;,this.value)">'+
    '<div id="payErr">'+(f&&f.state==='rejected'?'<div class="err">'+esc(f.message)+'</div>':'')+'</div>'+
    '<button class="btn" onclick="submitPayment()">Pay '+esc(c.currency.symbol)+' →</button>';
}
function editForm(field,value){
  S.form[field]=value;
  if(field==='country'){S.form.method='';}
  if(S.flow&&S.flow.state==='rejected'){api('/v1/payments/flow/edit',{method:'POST'}).then(function(r){S.flow=r.data;});S.flow=null;$('payErr').innerHTML='';}
  if(field!=='amount'){renderPayment();}
}
function submitPayment(){
  $('panel').innerHTML='<div class="center"><div class="spin"></div><p style="color:#a3a3a3;font-size:14px">Securing connection and analyzing transaction...</p></div>';
  api('/v1/payments',{method:'POST',body:{country_code:S.form.country,payment_method:S.form.method,amount:S.form.amount}}).then(function(r){
    S.flow=r.ok?r.data:{state:'rejected',message:r.data.message||'Request failed'};
    if(S.flow.state==='settled'||S.flow.state==='denied'){
      clearTimeout(S.timer);
      S.timer=setTimeout(function(){S.flow=null;S.form={country:'',method:'',amount:''};if(S.session.screen==='payment')render();},S.displayS*1000);
    }
    render();
  });
}
function renderResult(f){
  var v=f.verdict||{risk_level:'low',reason:'',indicators:[]};
  var ok=f.state==='settled';
  $('panel').innerHTML='<div class="center result"><div style="font-size:40px">'+(ok?'✅':'⛔')+'</div>'+
    '<h2>'+(ok?'Payment Successful':'Payment Denied')+'</h2>'+
    '<div class="box"><div style="display:flex;justify-content:space-between;align-items:center"><b style="color:#e5e5e5">Risk analysis</b><span class="badge '+esc(v.risk_level)+'">'+esc(v.risk_level)+'</span></div>'+
    '<p style="margin-top:8px">'+esc(v.reason)+'</p>'+
    (v.indicators&&v.indicators.length?'<ul class="ind">'+v.indicators.map(function(i){return '<li>'+esc(i)+'</li>';}).join('')+'</ul>':'')+'</div>'+
    (ok?'':'<button class="btn" onclick="acknowledge()">Try Again</button>')+'</div>';
}
function acknowledge(){
  clearTimeout(S.timer);
  api('/v1/payments/flow/acknowledge',{method:'POST'}).then(function(r){S.flow=null;render();});
}

// ── History ──
function renderHistory(){
  api('/v1/payments').then(function(r){
    var rows=(r.data&&r.data.payments)||[];
    if(!rows.length){$('panel').innerHTML='<div class="empty"><b style="color:#a3a3a3">No Payment History</b><br>Your past transactions will appear here.</div>';return;}
    $('panel').innerHTML='<h2 style="font-size:18px;margin-bottom:6px">Transaction History</h2><ul class="rows">'+rows.map(function(p){
      return '<li><div><div>'+icon(p.payment_method)+' '+esc(p.country)+'</div><div class="sub">'+new Date(p.date).toLocaleDateString()+' • '+esc(p.payment_method)+'</div></div>'+
        '<div class="mono">'+esc(symbolFor(p.country))+Number(p.amount).toFixed(2)+'</div></li>';
    }).join('')+'</ul>';
  });
}

// ── Admin ──
function renderAdmin(){
  $('main').innerHTML='<div class="pad"><div class="stats" id="stats"></div>'+
    '<div style="display:flex;justify-content:space-between;align-items:center;margin-bottom:8px"><h2 style="font-size:18px">Countries</h2><button class="btn-sm" onclick="editCountry(null)">+ Add Country</button></div>'+
    '<div id="countryForm"></div><ul class="rows" id="countryList"></ul></div>';
  api('/v1/stats').then(function(r){
    if(!r.ok)return;
    // Volume is summed across currencies without conversion.
    $('stats').innerHTML='<div class="stat"><div class="l">Transactions</div><div class="v">'+r.data.total_transactions+'</div></div>'+
      '<div class="stat"><div class="l">Total volume</div><div class="v">'+Number(r.data.total_volume).toLocaleString(undefined,{minimumFractionDigits:2})+'</div></div>';
  });
  loadCountries().then(function(){
    $('countryList').innerHTML=S.countries.length?S.countries.map(function(c){
      return '<li><div><div>'+esc(c.name)+' <span class="mono" style="color:#525252">'+esc(c.code)+'</span></div><div class="sub">'+esc(c.currency.code)+' ('+esc(c.currency.symbol)+') • '+c.payment_methods.map(esc).join(', ')+'</div></div>'+
        '<div style="display:flex;gap:6px"><button class="btn-sm" onclick="editCountry(&quot;'+esc(c.code)+'&quot;)">Edit</button><button class="btn-sm" onclick="deleteCountry(&quot;'+esc(c.code)+'&quot;)">Delete</button></div></li>';
    }).join(''):'<div class="empty">No countries configured.</div>';
  });
}
function editCountry(code){
  var c=code?country(code):null;
  S.editing=code;
  $('countryForm').innerHTML='<div class="box" style="margin-bottom:12px">'+
    '<label>Name</label><input id="cName" value="'+esc(c?c.name:'')+'">'+
    '<label>Code</label><input id="cCode" maxlength="2" value="'+esc(c?c.code:'')+'"'+(c?' disabled':'')+'>'+
    '<label>Currency code</label><input id="cCur" maxlength="3" value="'+esc(c?c.currency.code:'')+'">'+
    '<label>Currency symbol</label><input id="cSym" value="'+esc(c?c.currency.symbol:'')+'">'+
    '<label>Payment methods</label><div class="checks">'+Object.keys(S.methods).map(function(m){
      return '<label><input type="checkbox" class="cm" value="'+esc(m)+'"'+(c&&c.payment_methods.indexOf(m)>=0?' checked':'')+'>'+esc(m)+'</label>';
    }).join('')+'</div><div id="cErr"></div>'+
    '<div style="display:flex;gap:8px;margin-top:14px"><button class="btn-sm" onclick="saveCountry()">'+(c?'Save Changes':'Add Country')+'</button><button class="btn-sm" onclick="$(&quot;countryForm&quot;).innerHTML=&quot;&quot;">Cancel</button></div></div>';
}
function saveCountry(){
  var methods=[];document.querySelectorAll('.cm').forEach(function(el){if(el.checked)methods.push(el.value);});
  var body={name:$('cName').value,currency:{code:$('cCur').value,symbol:$('cSym').value},payment_methods:methods};
  var req;
  if(S.editing){req=api('/v1/countries/'+encodeURIComponent(S.editing),{method:'PUT',body:body});}
  else{body.code=$('cCode').value;req=api('/v1/countries',{method:'POST',body:body});}
  req.then(function(r){
    if(!r.ok){var m=r.data.message||(r.data.detail&&r.data.detail[0]&&r.data.detail[0].msg)||'Request failed';$('cErr').innerHTML='<div class="err">'+esc(m)+'</div>';return;}
    renderAdmin();
  });
}
function deleteCountry(code){
  if(!confirm('Are you sure you want to delete this country? This action cannot be undone.'))return;
  api('/v1/countries/'+encodeURIComponent(code),{method:'DELETE'}).then(renderAdmin);
}

boot();
</script>
</body></html>"""


app = create_app()

"""
OpenRTB 2.6 Bid Request Schema

Pydantic models for the structural part of an OpenRTB 2.6 BidRequest:
object shapes, field types and required fields. Unknown fields are
allowed everywhere (exchanges routinely add them). Cross-field and
business rules live in ``ortb.validation.rules``.

Models are strict: a string where an integer is expected is a type error,
not a coercion.
"""

from typing import List, Optional, Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class OrtbObject(BaseModel):
    """Base for all OpenRTB objects."""
    model_config = ConfigDict(strict=True, extra="allow")

    ext: Optional[Dict[str, Any]] = None


class Format(OrtbObject):
    w: Optional[int] = None
    h: Optional[int] = None
    wratio: Optional[int] = None
    hratio: Optional[int] = None
    wmin: Optional[int] = None


class Banner(OrtbObject):
    format: Optional[List[Format]] = None
    w: Optional[int] = None
    h: Optional[int] = None
    btype: Optional[List[int]] = None
    battr: Optional[List[int]] = None
    pos: Optional[int] = None
    mimes: Optional[List[str]] = None
    topframe: Optional[int] = None
    expdir: Optional[List[int]] = None
    api: Optional[List[int]] = None
    id: Optional[str] = None
    vcm: Optional[int] = None


class Video(OrtbObject):
    mimes: List[str] = Field(..., min_length=1)
    minduration: Optional[int] = None
    maxduration: Optional[int] = None
    startdelay: Optional[int] = None
    maxseq: Optional[int] = None
    poddur: Optional[int] = None
    protocols: Optional[List[int]] = None
    w: Optional[int] = None
    h: Optional[int] = None
    podid: Optional[str] = None
    podseq: Optional[int] = None
    placement: Optional[int] = None
    plcmt: Optional[int] = None
    linearity: Optional[int] = None
    skip: Optional[int] = None
    minbitrate: Optional[int] = None
    maxbitrate: Optional[int] = None
    playbackmethod: Optional[List[int]] = None
    api: Optional[List[int]] = None


class Audio(OrtbObject):
    mimes: List[str] = Field(..., min_length=1)
    minduration: Optional[int] = None
    maxduration: Optional[int] = None
    protocols: Optional[List[int]] = None
    startdelay: Optional[int] = None
    api: Optional[List[int]] = None


class Native(OrtbObject):
    request: str
    ver: Optional[str] = None
    api: Optional[List[int]] = None
    battr: Optional[List[int]] = None


class Deal(OrtbObject):
    id: str = Field(..., min_length=1)
    bidfloor: Optional[float] = None
    bidfloorcur: Optional[str] = None
    at: Optional[int] = None
    wseat: Optional[List[str]] = None
    wadomain: Optional[List[str]] = None


class Pmp(OrtbObject):
    private_auction: Optional[int] = None
    deals: Optional[List[Deal]] = None


class Imp(OrtbObject):
    id: str = Field(..., min_length=1)
    banner: Optional[Banner] = None
    video: Optional[Video] = None
    audio: Optional[Audio] = None
    native: Optional[Native] = None
    pmp: Optional[Pmp] = None
    displaymanager: Optional[str] = None
    displaymanagerver: Optional[str] = None
    instl: Optional[int] = None
    tagid: Optional[str] = None
    bidfloor: Optional[float] = None
    bidfloorcur: Optional[str] = None
    clickbrowser: Optional[int] = None
    secure: Optional[int] = None
    iframebuster: Optional[List[str]] = None
    rwdd: Optional[int] = None
    exp: Optional[int] = None


class Publisher(OrtbObject):
    id: Optional[str] = None
    name: Optional[str] = None
    cat: Optional[List[str]] = None
    domain: Optional[str] = None


class Content(OrtbObject):
    id: Optional[str] = None
    title: Optional[str] = None
    series: Optional[str] = None
    genre: Optional[str] = None
    cat: Optional[List[str]] = None
    language: Optional[str] = None
    livestream: Optional[int] = None
    len: Optional[int] = None


class Site(OrtbObject):
    id: Optional[str] = None
    name: Optional[str] = None
    domain: Optional[str] = None
    cat: Optional[List[str]] = None
    page: Optional[str] = None
    ref: Optional[str] = None
    search: Optional[str] = None
    mobile: Optional[int] = None
    privacypolicy: Optional[int] = None
    publisher: Optional[Publisher] = None
    content: Optional[Content] = None
    keywords: Optional[str] = None


class App(OrtbObject):
    id: Optional[str] = None
    name: Optional[str] = None
    bundle: Optional[str] = None
    domain: Optional[str] = None
    storeurl: Optional[str] = None
    cat: Optional[List[str]] = None
    ver: Optional[str] = None
    privacypolicy: Optional[int] = None
    paid: Optional[int] = None
    publisher: Optional[Publisher] = None
    content: Optional[Content] = None
    keywords: Optional[str] = None


class Geo(OrtbObject):
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lon: Optional[float] = Field(default=None, ge=-180, le=180)
    type: Optional[int] = None
    accuracy: Optional[int] = None
    country: Optional[str] = Field(default=None, pattern=r"^[A-Z]{3}$")
    region: Optional[str] = None
    metro: Optional[str] = None
    city: Optional[str] = None
    zip: Optional[str] = None
    utcoffset: Optional[int] = None


class Device(OrtbObject):
    ua: Optional[str] = None
    geo: Optional[Geo] = None
    dnt: Optional[int] = None
    lmt: Optional[int] = None
    ip: Optional[str] = None
    ipv6: Optional[str] = None
    devicetype: Optional[int] = None
    make: Optional[str] = None
    model: Optional[str] = None
    os: Optional[str] = None
    osv: Optional[str] = None
    h: Optional[int] = None
    w: Optional[int] = None
    ppi: Optional[int] = None
    js: Optional[int] = None
    language: Optional[str] = None
    carrier: Optional[str] = None
    connectiontype: Optional[int] = None
    ifa: Optional[str] = None


class User(OrtbObject):
    id: Optional[str] = None
    buyeruid: Optional[str] = None
    yob: Optional[int] = None
    gender: Optional[str] = Field(default=None, pattern=r"^[MFO]$")
    keywords: Optional[str] = None
    geo: Optional[Geo] = None
    consent: Optional[str] = None


class SupplyChainNode(OrtbObject):
    asi: str
    sid: str
    hp: int
    rid: Optional[str] = None


class SupplyChain(OrtbObject):
    complete: int
    nodes: List[SupplyChainNode]
    ver: str


class Source(OrtbObject):
    fd: Optional[int] = None
    tid: Optional[str] = None
    pchain: Optional[str] = None
    schain: Optional[SupplyChain] = None


class Regs(OrtbObject):
    coppa: Optional[int] = None
    gdpr: Optional[int] = None
    us_privacy: Optional[str] = None
    gpp: Optional[str] = None
    gpp_sid: Optional[List[int]] = None


class BidRequest(OrtbObject):
    """Top-level OpenRTB 2.6 BidRequest.

    ``id``, ``imp`` (at least one impression, each with an ``id``) and
    ``at`` are required.
    """
    id: str = Field(..., min_length=1)
    imp: List[Imp] = Field(..., min_length=1)
    at: int
    site: Optional[Site] = None
    app: Optional[App] = None
    device: Optional[Device] = None
    user: Optional[User] = None
    test: Optional[int] = None
    tmax: Optional[int] = None
    wseat: Optional[List[str]] = None
    bseat: Optional[List[str]] = None
    allimps: Optional[int] = None
    cur: Optional[List[str]] = None
    wlang: Optional[List[str]] = None
    bcat: Optional[List[str]] = None
    badv: Optional[List[str]] = None
    bapp: Optional[List[str]] = None
    source: Optional[Source] = None
    regs: Optional[Regs] = None


SCHEMAS = {
    "2.6": BidRequest,
}

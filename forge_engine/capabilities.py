"""
EffectForge Engine - Capability Blocks v1.0

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

Named boilerplate fragments used by compliance enforcement.

Each block belongs to one article and one output type. Applying a block
records "<type>:<name>" in GeneratedEffect.applied_capabilities and a
block already in that set is never inserted again, whatever the code
text looks like.

JavaScript blocks become class methods (inserted before the closing
brace of the class) with a call hooked into init(). CSS blocks are
appended as rules. After Effects blocks go after the time variable.
"""

import re
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .core.types import GeneratedEffect, OutputType
from .generator import slugify, substitute

logger = logging.getLogger(__name__)


# =============================================================================
# TYPES
# =============================================================================

class Placement:
    """Where a block goes in the target code."""
    CLASS_MEMBER = "class_member"   # Before the final closing brace
    APPEND = "append"               # End of the code
    AFTER_ANCHOR = "after_anchor"   # After the anchor line, else at the top


@dataclass(frozen=True)
class CapabilityBlock:
    """A deterministic code fragment implementing one article's markers."""
    name: str
    article_id: int
    output_type: OutputType
    body: str
    placement: str = Placement.CLASS_MEMBER
    hook: Optional[str] = None          # Statement added after `init() {`
    anchor: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.output_type.value}:{self.name}"


INIT_LINE = re.compile(r"^([ \t]*)init\(\)\s*\{[ \t]*$", re.MULTILINE)
AE_TIME_ANCHOR = "var time = thisComp.time;"


# =============================================================================
# CODE SPLICING HELPERS
# =============================================================================

def insert_class_member(code: str, member: str) -> str:
    """Insert `member` before the last closing brace, or append if none."""
    index = code.rfind("}")
    if index == -1:
        return code.rstrip("\n") + "\n" + member.strip("\n") + "\n"
    head = code[:index].rstrip()
    return head + "\n" + member.rstrip() + "\n" + code[index:]


def insert_init_hook(code: str, statement: str) -> str:
    """Add `statement` as the first line of init(). No-op without init()."""
    match = INIT_LINE.search(code)
    if not match:
        return code
    indent = match.group(1) + "  "
    return code[:match.end()] + "\n" + indent + statement + code[match.end():]


def insert_after_anchor(code: str, anchor: str, text: str) -> str:
    """Insert `text` on the lines after `anchor`, or at the top without it."""
    index = code.find(anchor)
    if index == -1:
        return text.strip("\n") + "\n" + code
    end = index + len(anchor)
    return code[:end] + "\n" + text.strip("\n") + code[end:]


# =============================================================================
# JAVASCRIPT BLOCKS
# =============================================================================

JS_PERFORMANCE = CapabilityBlock(
    name="performance",
    article_id=1,
    output_type=OutputType.JAVASCRIPT,
    hook="this.setupPerformanceMonitoring();",
    body="""
  // Article I: Performance Absolute
  setupPerformanceMonitoring() {
    this.frameTime = 1000 / 60;
    this.performanceHistory = [];
  }

  recordFrameTime(ms) {
    this.performanceHistory.push(ms);
    if (this.performanceHistory.length > 60) this.performanceHistory.shift();
    return ms <= this.frameTime;
  }
""",
)

JS_ADAPTIVE = CapabilityBlock(
    name="adaptive_intelligence",
    article_id=2,
    output_type=OutputType.JAVASCRIPT,
    hook="this.autoCalibrate();",
    body="""
  // Article II: Adaptive Intelligence
  autoCalibrate() {
    const deviceCapacity = this.detectDeviceCapacity();
    this.adaptiveParameters = {
      low: { particleCount: 30 },
      medium: { particleCount: 60 },
      high: { particleCount: 100 }
    }[deviceCapacity];
    this.performanceMonitor = this.performanceMonitor || { samples: [] };
  }

  detectDeviceCapacity() {
    const gl = document.createElement('canvas').getContext('webgl');
    if (/Mobile|Android|iPhone|iPad/.test(navigator.userAgent)) return 'low';
    return gl ? 'high' : 'medium';
  }
""",
)

JS_UNIVERSAL = CapabilityBlock(
    name="universal_compatibility",
    article_id=3,
    output_type=OutputType.JAVASCRIPT,
    hook="this.setupCrossBrowserCompat();",
    body="""
  // Article III: Universal Versatility
  setupCrossBrowserCompat() {
    // crossBrowser polyfill for requestAnimationFrame
    if (!window.requestAnimationFrame) {
      window.requestAnimationFrame = (callback) => setTimeout(callback, 16);
    }
    this.detectPlatform();
  }

  detectPlatform() {
    const agent = navigator.userAgent;
    this.platform = {
      isMobile: /Mobile|Android|iPhone|iPad/.test(agent),
      isTablet: /iPad|Android(?!.*Mobile)/.test(agent),
      isDesktop: !/Mobile|Android|iPhone|iPad/.test(agent)
    };
  }
""",
)

JS_EXPERIENCE = CapabilityBlock(
    name="perfect_experience",
    article_id=4,
    output_type=OutputType.JAVASCRIPT,
    hook="this.bindEvents();",
    body="""
  // Article IV: Perfect Experience
  oneClick() {
    return Promise.resolve(this);
  }

  livePreview() {
    return this.canvas || this.element;
  }

  bindEvents() {
    const target = this.canvas || this.element;
    if (!target) return;
    target.addEventListener('mousemove', (e) => {
      const rect = target.getBoundingClientRect();
      this.mouseX = e.clientX - rect.left;
      this.mouseY = e.clientY - rect.top;
    });
  }
""",
)

JS_VISUAL = CapabilityBlock(
    name="visual_impact",
    article_id=5,
    output_type=OutputType.JAVASCRIPT,
    hook="this.createWowFactor();",
    body="""
  // Article V: Visual Impact
  createWowFactor() {
    this.wowFactor = true;
    this.antialiasing = true;
    if (this.ctx) {
      this.ctx.shadowBlur = 15;
      this.ctx.shadowColor = 'rgba(0, 212, 255, 0.6)';
      this.ctx.imageSmoothingEnabled = true;
      this.ctx.imageSmoothingQuality = 'high';
    }
    this.enableAdvancedPhysics();
  }

  enableAdvancedPhysics() {
    this.gravity = 0.1;
    this.friction = 0.99;
    this.bounce = 0.8;
  }
""",
)

JS_ADDICTIVE = CapabilityBlock(
    name="addictive_ecosystem",
    article_id=6,
    output_type=OutputType.JAVASCRIPT,
    hook="this.createEngagementLoop();",
    body="""
  // Article VI: Addictive Ecosystem
  createEngagementLoop() {
    this.immersive = true;
    this.progress = 0;
    this.surpriseTimer = setTimeout(() => this.triggerSurpriseElement(), 5000);
  }

  triggerSurpriseElement() {
    this.variation = (this.variation || 0) + 1;
    this.progress = Math.min(1, this.progress + 0.1);
    this.surpriseTimer = setTimeout(() => this.triggerSurpriseElement(), 5000);
  }
""",
)

JS_COMPETITIVE = CapabilityBlock(
    name="competitive_edge",
    article_id=7,
    output_type=OutputType.JAVASCRIPT,
    hook="this.enableAdvancedRendering();",
    body="""
  // Article VII: Competitive Domination
  enableAdvancedRendering() {
    this.advancedRendering = true;
    this.optimizationLevel = 'maximum';
  }
""",
)


# =============================================================================
# CSS BLOCKS
# =============================================================================

CSS_PERFORMANCE = CapabilityBlock(
    name="performance",
    article_id=1,
    output_type=OutputType.CSS,
    placement=Placement.APPEND,
    body="""
/* Article I: Performance Absolute */
.{{EFFECT_SLUG}} {
  will-change: transform, opacity;
  transform: translate3d(0, 0, 0);
  backface-visibility: hidden;
}
""",
)

CSS_ADAPTIVE = CapabilityBlock(
    name="adaptive_intelligence",
    article_id=2,
    output_type=OutputType.CSS,
    placement=Placement.APPEND,
    body="""
/* Article II: Adaptive Intelligence */
/* adaptiveParameters: scale back motion by deviceCapacity */
@media (prefers-reduced-motion: reduce), (max-resolution: 1dppx) {
  .{{EFFECT_SLUG}} {
    animation-duration: 4s;
  }
}

/* optimizeForNextFrame: isolate layout and paint */
.{{EFFECT_SLUG}} {
  contain: layout paint;
}
""",
)

CSS_UNIVERSAL = CapabilityBlock(
    name="universal_compatibility",
    article_id=3,
    output_type=OutputType.CSS,
    placement=Placement.APPEND,
    body="""
/* Article III: Universal Versatility */
/* compatibility: prefixed fallbacks (setupCrossBrowserCompat), pointer queries (detectPlatform) */
.{{EFFECT_SLUG}} {
  -webkit-transform: translateZ(0);
  -webkit-backface-visibility: hidden;
}

@media (hover: none) and (pointer: coarse) {
  .{{EFFECT_SLUG}} {
    animation-play-state: running;
  }
}
""",
)

CSS_VISUAL = CapabilityBlock(
    name="visual_impact",
    article_id=5,
    output_type=OutputType.CSS,
    placement=Placement.APPEND,
    body="""
/* Article V: Visual Impact */
.{{EFFECT_SLUG}} {
  filter: drop-shadow(0 0 10px rgba(0, 212, 255, 0.5)); /* glow */
  animation-timing-function: cubic-bezier(0.34, 1.56, 0.64, 1); /* spring physics */
  -webkit-font-smoothing: antialiased;
}
""",
)

CSS_COMPETITIVE = CapabilityBlock(
    name="competitive_edge",
    article_id=7,
    output_type=OutputType.CSS,
    placement=Placement.APPEND,
    body="""
/* Article VII: Competitive Domination */
/* advanced compositing */
.{{EFFECT_SLUG}} {
  mix-blend-mode: screen;
  isolation: isolate;
}
""",
)


# =============================================================================
# AFTER EFFECTS BLOCKS
# =============================================================================

AE_PERFORMANCE = CapabilityBlock(
    name="performance",
    article_id=1,
    output_type=OutputType.AFTEREFFECTS,
    placement=Placement.AFTER_ANCHOR,
    anchor=AE_TIME_ANCHOR,
    body="""
// Article I: Performance Absolute
if (thisComp.frameRate < 60) {
  time *= 0.8;
}
""",
)

AE_ADAPTIVE = CapabilityBlock(
    name="adaptive_intelligence",
    article_id=2,
    output_type=OutputType.AFTEREFFECTS,
    placement=Placement.AFTER_ANCHOR,
    anchor=AE_TIME_ANCHOR,
    body="""
// Article II: Adaptive Intelligence (autoCalibrate)
var deviceCapacity = thisComp.width * thisComp.height > 1920 * 1080 ? 'high' : 'low';
var adaptiveParameters = { complexityCap: deviceCapacity === 'low' ? 0.7 : 1 };
var performanceMonitor = thisComp.frameDuration;
""",
)


# =============================================================================
# REGISTRY
# =============================================================================

CAPABILITY_BLOCKS: List[CapabilityBlock] = [
    JS_PERFORMANCE,
    JS_ADAPTIVE,
    JS_UNIVERSAL,
    JS_EXPERIENCE,
    JS_VISUAL,
    JS_ADDICTIVE,
    JS_COMPETITIVE,
    CSS_PERFORMANCE,
    CSS_ADAPTIVE,
    CSS_UNIVERSAL,
    CSS_VISUAL,
    CSS_COMPETITIVE,
    AE_PERFORMANCE,
    AE_ADAPTIVE,
]


def blocks_for(output_type: OutputType, article_ids: Iterable[int]) -> List[CapabilityBlock]:
    """Registry blocks for a type and set of articles, in article order."""
    wanted = set(article_ids)
    blocks = [
        b for b in CAPABILITY_BLOCKS
        if b.output_type is output_type and b.article_id in wanted
    ]
    return sorted(blocks, key=lambda b: b.article_id)


def apply_block(code: str, block: CapabilityBlock, context: Dict[str, object] = None) -> str:
    """Splice one block into code. Does not check whether it was applied."""
    body = substitute(block.body, context or {})

    if block.placement == Placement.APPEND:
        return code.rstrip("\n") + "\n" + body.rstrip("\n") + "\n"
    if block.placement == Placement.AFTER_ANCHOR:
        return insert_after_anchor(code, block.anchor or "", body)

    code = insert_class_member(code, body)
    if block.hook:
        code = insert_init_hook(code, block.hook)
    return code


def apply_capabilities(effect: GeneratedEffect, article_ids: Iterable[int]) -> List[str]:
    """
    Apply the blocks for `article_ids` to every code field the effect has.

    Returns:
        Keys of the blocks newly applied by this call
    """
    article_ids = list(article_ids)
    context = {"EFFECT_SLUG": slugify(effect.name)}
    applied: List[str] = []

    for output_type in (OutputType.JAVASCRIPT, OutputType.CSS, OutputType.AFTEREFFECTS):
        code = effect.code_for(output_type)
        if not code:
            continue
        for block in blocks_for(output_type, article_ids):
            if block.key in effect.applied_capabilities:
                continue
            code = apply_block(code, block, context)
            effect.applied_capabilities.add(block.key)
            applied.append(block.key)
        effect.set_code(output_type, code)

    if applied:
        logger.debug(f"Applied capability blocks to {effect.id}: {', '.join(applied)}")
    return applied


# =============================================================================
# MODULE EXPORTS
# =============================================================================

__all__ = [
    "CapabilityBlock",
    "Placement",
    "CAPABILITY_BLOCKS",
    "blocks_for",
    "apply_block",
    "apply_capabilities",
    "insert_class_member",
    "insert_init_hook",
    "insert_after_anchor",
]

"""
EffectForge Engine - Template Catalogue v1.0

Copyright (c) 2025 Brent Lefebure / EhkoLabs
Licensed under AGPLv3 - See LICENSE in repository root

Fixed catalogue of effect code templates per output type.
Each template carries a base code string with {{PLACEHOLDER}} tokens
and affinity numbers used to match it against an EffectDNA.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Any

from .core.types import OutputType


# =============================================================================
# PLACEHOLDERS
# =============================================================================

# Marker replaced by the constitutional setup block (JavaScript only)
CONSTITUTIONAL_MARKER = "// CONSTITUTIONAL_SETUP"

# Left in place by the generator; filled in by the optimizer
FRAME_TIME_PLACEHOLDER = "{{FRAME_TIME}}"

PLACEHOLDER_NAMES = [
    "EFFECT_NAME",     # CamelCase class name
    "EFFECT_SLUG",     # kebab-case CSS class
    "ENERGY",
    "COMPLEXITY",
    "ELEGANCE",
    "TARGET_FPS",
    "MAX_MEMORY",
    "CONCEPTS",
    "PERFORMANCE",
    "MEMORY",
    "SCALE",           # 1 + complexity
    "DURATION",        # Animation seconds, shorter for high energy
]


@dataclass
class EffectTemplate:
    """One entry of the template catalogue."""
    name: str
    category: str
    output_type: OutputType
    base_code: str
    performance: float        # 0-1, how cheap the template is to run
    complexity: float         # 0-1, visual detail it is suited for
    energy: float             # 0-1, motion intensity it is suited for
    compatibility: List[str] = field(default_factory=lambda: ["web", "mobile", "desktop"])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "type": self.output_type.value,
            "performance": self.performance,
            "complexity": self.complexity,
            "energy": self.energy,
            "compatibility": list(self.compatibility),
        }


# =============================================================================
# JAVASCRIPT TEMPLATES
# =============================================================================

PARTICLE_SYSTEM_CODE = """class {{EFFECT_NAME}} {
  constructor(container, options = {}) {
    this.container = container;
    this.options = { ...this.getDefaults(), ...options };
    // CONSTITUTIONAL_SETUP
    this.init();
  }

  getDefaults() {
    return {
      particleCount: 100,
      speed: {{ENERGY}},
      complexity: {{COMPLEXITY}},
      elegance: {{ELEGANCE}},
      targetFPS: {{TARGET_FPS}},
      maxMemory: {{MAX_MEMORY}}
    };
  }

  init() {
    this.canvas = document.createElement('canvas');
    this.ctx = this.canvas.getContext('2d');
    this.particles = [];
    this.trailBuffer = new Array(256);
    this.container.appendChild(this.canvas);
    this.createParticles();
    this.startAnimation();
  }

  createParticles() {
    for (let i = 0; i < this.options.particleCount; i++) {
      this.particles.push({
        x: this.canvas.width / 2,
        y: this.canvas.height / 2,
        vx: (Math.random() - 0.5) * this.options.speed * 10,
        vy: (Math.random() - 0.5) * this.options.speed * 10,
        life: 1
      });
    }
  }

  startAnimation() {
    this.timer = setInterval(() => this.render(), {{FRAME_TIME}});
  }

  render() {
    const start = performance.now();

    this.ctx.clearRect(0, 0, this.canvas.width, this.canvas.height);

    this.particles.forEach(particle => {
      particle.x += particle.vx;
      particle.y += particle.vy;
      particle.life *= 0.99;
      this.ctx.globalAlpha = particle.life;
      this.ctx.fillRect(particle.x, particle.y, 2, 2);
    });

    const renderTime = performance.now() - start;
    if (renderTime > {{FRAME_TIME}}) {
      this.optimizeForNextFrame();
    }
  }

  optimizeForNextFrame() {
    // Over budget: drop the faintest tenth of the particles
    this.particles.sort((a, b) => b.life - a.life);
    this.particles.splice(-Math.max(1, Math.floor(this.particles.length * 0.1)));
  }
}
"""

CSS_ANIMATION_WRAPPER_CODE = """class {{EFFECT_NAME}} {
  constructor(element, options = {}) {
    this.element = element;
    this.options = { duration: {{DURATION}}, scale: {{SCALE}}, ...options };
    // CONSTITUTIONAL_SETUP
    this.init();
  }

  init() {
    const style = document.createElement('style');
    style.textContent = `
      @keyframes {{EFFECT_SLUG}}-cycle {
        0% { transform: scale(1) rotate(0deg); }
        50% { transform: scale(${this.options.scale}) rotate(180deg); }
        100% { transform: scale(1) rotate(360deg); }
      }
    `;
    document.head.appendChild(style);
    this.element.style.animation = `{{EFFECT_SLUG}}-cycle ${this.options.duration}s infinite ease-in-out`;
  }
}
"""

CANVAS_EFFECT_CODE = """class {{EFFECT_NAME}} {
  constructor(canvas) {
    this.canvas = canvas;
    this.ctx = canvas.getContext('2d');
    // CONSTITUTIONAL_SETUP
    this.init();
  }

  init() {
    this.energy = {{ENERGY}};
    this.complexity = {{COMPLEXITY}};
    this.elegance = {{ELEGANCE}};
    this.layers = Math.max(1, Math.floor(this.complexity * 10));
    this.render();
  }

  render() {
    const time = Date.now() * 0.001;
    this.ctx.clearRect(0, 0, this.canvas.width, this.canvas.height);

    for (let layer = 0; layer < this.layers; layer++) {
      const radius = 40 + layer * 12 + Math.sin(time * this.energy * 2 + layer) * 10;
      this.ctx.beginPath();
      this.ctx.arc(this.canvas.width / 2, this.canvas.height / 2, radius, 0, Math.PI * 2);
      this.ctx.stroke();
    }

    requestAnimationFrame(() => this.render());
  }
}
"""


# =============================================================================
# CSS TEMPLATES
# =============================================================================

TRANSFORM_3D_CODE = """.{{EFFECT_SLUG}} {
  transform: perspective(800px) translateZ(0) scale({{SCALE}});
  transition: transform {{DURATION}}s ease;
  transform-style: preserve-3d;
}

.{{EFFECT_SLUG}}:hover {
  transform: perspective(800px) rotateY(25deg) scale({{SCALE}});
}
"""

KEYFRAME_ANIMATION_CODE = """.{{EFFECT_SLUG}} {
  animation: {{EFFECT_SLUG}}-cycle {{DURATION}}s infinite ease-in-out;
  transform-origin: center;
}

@keyframes {{EFFECT_SLUG}}-cycle {
  0% { transform: scale(1) rotate(0deg); opacity: 1; }
  50% { transform: scale({{SCALE}}) rotate(180deg); opacity: 0.8; }
  100% { transform: scale(1) rotate(360deg); opacity: 1; }
}
"""


# =============================================================================
# AFTER EFFECTS TEMPLATES
# =============================================================================

EXPRESSION_CODE = """// After Effects expression for {{EFFECT_NAME}}
var energy = {{ENERGY}};
var complexity = {{COMPLEXITY}};
var elegance = {{ELEGANCE}};
var time = thisComp.time;

var energyX = Math.sin(time * (energy + 0.5) * 2) * 100;
var energyY = Math.cos(time * (complexity + 0.5) * 1.5) * 80;

transform.position + [energyX, energyY];
"""


# =============================================================================
# CATALOGUE
# =============================================================================

TEMPLATES: Dict[OutputType, List[EffectTemplate]] = {
    OutputType.JAVASCRIPT: [
        EffectTemplate(
            name="particle-system",
            category="particle",
            output_type=OutputType.JAVASCRIPT,
            base_code=PARTICLE_SYSTEM_CODE,
            performance=0.9,
            complexity=0.3,
            energy=0.3,
            compatibility=["web", "mobile"],
        ),
        EffectTemplate(
            name="css-animation-wrapper",
            category="animation",
            output_type=OutputType.JAVASCRIPT,
            base_code=CSS_ANIMATION_WRAPPER_CODE,
            performance=0.75,
            complexity=0.05,
            energy=0.05,
        ),
        EffectTemplate(
            name="canvas-effect",
            category="visual",
            output_type=OutputType.JAVASCRIPT,
            base_code=CANVAS_EFFECT_CODE,
            performance=0.8,
            complexity=0.6,
            energy=0.2,
            compatibility=["web", "desktop"],
        ),
    ],
    OutputType.CSS: [
        EffectTemplate(
            name="transform-3d",
            category="transform",
            output_type=OutputType.CSS,
            base_code=TRANSFORM_3D_CODE,
            performance=0.95,
            complexity=0.2,
            energy=0.1,
        ),
        EffectTemplate(
            name="keyframe-animation",
            category="animation",
            output_type=OutputType.CSS,
            base_code=KEYFRAME_ANIMATION_CODE,
            performance=0.9,
            complexity=0.3,
            energy=0.5,
        ),
    ],
    OutputType.AFTEREFFECTS: [
        EffectTemplate(
            name="expression",
            category="expression",
            output_type=OutputType.AFTEREFFECTS,
            base_code=EXPRESSION_CODE,
            performance=0.8,
            complexity=0.5,
            energy=0.5,
            compatibility=["desktop"],
        ),
    ],
}


def templates_for(output_type) -> List[EffectTemplate]:
    """Templates for a concrete output type. Anything else gets JavaScript."""
    return TEMPLATES.get(OutputType.parse(output_type), TEMPLATES[OutputType.JAVASCRIPT])


def get_template(name: str) -> EffectTemplate:
    """Look up a template by name. Raises KeyError if unknown."""
    for group in TEMPLATES.values():
        for template in group:
            if template.name == name:
                return template
    raise KeyError(name)


# =============================================================================
# MODULE EXPORTS
# =============================================================================

__all__ = [
    "EffectTemplate",
    "TEMPLATES",
    "templates_for",
    "get_template",
    "CONSTITUTIONAL_MARKER",
    "FRAME_TIME_PLACEHOLDER",
    "PLACEHOLDER_NAMES",
]
